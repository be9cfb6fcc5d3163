"""
Conformance Test Suite

This suite defines the NORMATIVE behavior of the money market engine.
Any compliant implementation MUST pass these tests.

The tests are organized by invariant:
1. temporal.py - Accrual never moves backward in time
2. idempotency.py - Accruing twice to the same time changes nothing
3. monotonicity.py - Indices and liabilities never decrease under accrual
4. atomicity.py - A failed operation leaves config, state and balances untouched
5. determinism.py - Read-only projections equal what a commit would store
6. conservation.py - Market operations move the stable asset, never create it

These tests use hypothesis for property-based testing.
"""
