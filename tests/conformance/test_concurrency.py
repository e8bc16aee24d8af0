"""
Concurrency Conformance Tests

INVARIANT: Concurrent operations behave as some serial order of them.

    ∀ concurrent purchases P_1..P_n against one ledger:
        total_units = Σ units of the applied P_i ≤ unit_cap
        custody     = Σ payment of the applied P_i

Each mutating operation holds the ledger lock from its first check to its
last write, so two purchases can never both pass a capacity check that only
one of them fits.
"""

import threading

from claim import ClaimLedger, ClaimConfig, ClaimerKind, ClaimError, Token


OWNER = "deployer"
BUYERS = [f"buyer_{i}" for i in range(8)]


def _racing_ledger(unit_cap: int):
    token = Token("Dai", "DAI", 18)
    config = ClaimConfig(percent_cap=1_000_000, unit_cap=unit_cap, min_purchase=1)
    claim = ClaimLedger(3, token, owner=OWNER, config=config, verbose=False)
    claim.toggle_sale_open(OWNER)
    for who in BUYERS:
        token.mint(who, 10 ** 12)
        token.approve(who, claim.address, 10 ** 12)
        claim.set_whitelist_allowance(OWNER, who, unit_cap)
    return claim, token


def _run_threads(targets):
    barrier = threading.Barrier(len(targets))

    def start(target):
        barrier.wait()
        target()

    threads = [threading.Thread(target=start, args=(t,)) for t in targets]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()


class TestConcurrentPurchases:
    """Racing buyers against a cap that cannot satisfy all of them."""

    def test_cap_never_exceeded(self):
        claim, token = _racing_ledger(unit_cap=1_000)
        applied = []
        rejected = []

        def buyer(who):
            def run():
                for _ in range(50):
                    try:
                        claim.buy_allocation(who, who, 7)
                        applied.append(who)
                    except ClaimError:
                        rejected.append(who)
            return run

        _run_threads([buyer(who) for who in BUYERS])

        assert claim.total_units_allocated == 7 * len(applied)
        assert claim.total_units_allocated <= 1_000
        assert rejected, "cap should have turned some purchases away"
        assert token.balance_of(claim.address) == 7 * 3 * len(applied)
        assert claim.verify_totals()['valid']

    def test_log_sequence_is_gapless(self):
        claim, _ = _racing_ledger(unit_cap=10_000)
        _run_threads([
            (lambda who=who: [claim.buy_allocation(who, who, 10) for _ in range(20)])
            for who in BUYERS
        ])
        sequences = [record.sequence for record in claim.operation_log]
        assert sequences == list(range(len(sequences)))
        assert claim.total_units_allocated == 10 * 20 * len(BUYERS)

    def test_whitelist_spent_once(self):
        # Many payers race to spend one beneficiary's allowance
        claim, token = _racing_ledger(unit_cap=10_000)
        claim.set_whitelist_allowance(OWNER, "target", 100)
        credited = []

        def payer(who):
            def run():
                for _ in range(10):
                    try:
                        claim.buy_allocation(who, "target", 5)
                        credited.append(5)
                    except ClaimError:
                        pass
            return run

        _run_threads([payer(who) for who in BUYERS])

        assert sum(credited) == 100
        assert claim.get_term("target").max_units == 100
        assert claim.whitelist_of("target") == 0

    def test_concurrent_admin_and_migration(self):
        claim, _ = _racing_ledger(unit_cap=10_000)
        for who in BUYERS:
            claim.set_term(OWNER, who, 100, 1_000, ClaimerKind.DEVELOPER)
        totals = (claim.total_percent_allocated, claim.total_units_allocated)

        def migrate(who):
            def run():
                claim.push_migration(who, f"{who}_new")
                claim.pull_migration(f"{who}_new", who)
            return run

        _run_threads([migrate(who) for who in BUYERS])

        assert (claim.total_percent_allocated, claim.total_units_allocated) == totals
        assert all(claim.get_term(f"{who}_new").max_units == 1_000 for who in BUYERS)
        assert all(claim.get_term(who).is_zero for who in BUYERS)


class TestConcurrentQueries:
    """Queries that scan the ledger while a writer keeps changing it."""

    def test_verify_totals_during_set_term(self):
        claim, _ = _racing_ledger(unit_cap=10 ** 12)
        stop = threading.Event()
        errors = []

        def writer():
            i = 0
            while not stop.is_set():
                who = f"p{i % 5000}"
                try:
                    claim.set_term(OWNER, who, i % 2, i % 7, ClaimerKind.ADVISER)
                except ClaimError:
                    pass
                i += 1

        thread = threading.Thread(target=writer)
        thread.start()
        try:
            for _ in range(5000):
                try:
                    result = claim.verify_totals()
                    claim.snapshot()
                    claim.list_participants()
                except RuntimeError as exc:
                    errors.append(repr(exc))
                    break
                if not result['valid']:
                    errors.append(result['discrepancies'])
                    break
        finally:
            stop.set()
            thread.join()

        assert errors == []
        assert claim.verify_totals()['valid']
