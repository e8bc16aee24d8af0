"""
Allocation Ledger Conformance Suite

Property-based suites, one per ledger invariant:
1. test_capacity.py - Running totals equal the Term sums and stay within both caps
2. test_atomicity.py - Rejected operations leave state, log and balances untouched
3. test_conservation.py - Migration moves Terms without changing totals;
   the payment medium conserves supply
4. test_concurrency.py - Concurrent operations and queries behave as a serial order

strategies.py holds the shared hypothesis operation generator and a ledger factory.
"""
