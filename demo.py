#!/usr/bin/env python3
"""
demo.py - Interactive Walkthrough: A Token Sale From Deployment to Withdrawal

A step-by-step demonstration of the allocation ledger. Each step builds on
the previous one. Press Enter to advance.

WHAT YOU'LL SEE:
  1-3:  Deployment     - Mock DAI, the ledger, funding a purchaser
  4-6:  Purchase gates - Closed sale, whitelist, allowance, minimum
  7-8:  Allocation     - Successful purchases, team and adviser terms, caps
  9:    Migration      - Moving an allocation to a new identity
  10:   Settlement     - Withdrawing proceeds, reconciling the totals

Run:
    python demo.py           # Interactive mode (press Enter for each step)
    python demo.py --quick   # Run all steps without pausing
"""

from dataclasses import dataclass
import sys

from claim import (
    ClaimLedger, ClaimerKind, ClaimError, Token,
    deploy_mock_dai, deploy_claim, share,
    ONE_UNIT, MIN_PURCHASE, PERCENT_CAP, UNIT_CAP,
)


# ============================================================================
# CONFIGURATION
# ============================================================================

@dataclass
class DemoConfig:
    """Parameters for the walkthrough. Change them to experiment."""
    dai: int = 10 ** 18
    investor_funding_dai: int = 100_000
    fund_funding_dai: int = 100_000

    # Whitelist allowances, in whole units
    investor_allowance: int = 1_000
    fund_allowance: int = 40_000

    # Directly granted terms: (percent, whole units)
    developer_term: tuple = (200_000, 28_000)
    adviser_term: tuple = (50_000, 7_000)

    public_price: int = 150


CONFIG = DemoConfig()

QUICK_MODE = "--quick" in sys.argv


def wait_for_enter():
    """Pause for the reader unless running with --quick."""
    if not QUICK_MODE:
        input("\n[Press Enter to continue...]")


def step_header(number: int, title: str, objective: str):
    print(f"\n{'='*70}")
    print(f"STEP {number}: {title}")
    print(f"{'='*70}")
    print(f"\nObjective: {objective}\n")


def section_header(text: str):
    print(f"\n--- {text} ---\n")


def units(whole: int) -> int:
    """Convert whole allocation units to base units."""
    return whole * ONE_UNIT


def show_term(claim: ClaimLedger, who: str):
    term = claim.get_term(who)
    print(f"  {who:<12} percent={term.percent:>8}  units={term.max_units / ONE_UNIT:>10,.2f}"
          f"  kind={term.kind.name}")


def attempt(description: str, action):
    """Run an action expected to be rejected and show the reason."""
    print(f">>> {description}")
    try:
        action()
        print("    (accepted)")
    except ClaimError as exc:
        print(f"    rejected: {type(exc).__name__}: {exc}")


# ============================================================================
# PHASE 1: DEPLOYMENT (Steps 1-3)
# ============================================================================

def step_01_deploy_dai() -> Token:
    step_header(1, "The Payment Asset",
        "Deploy the stablecoin purchasers pay with.")

    print("""
    The ledger never holds balances itself. Payments go through a VALUE
    MEDIUM, an ERC-20 style token with balances and approvals. In
    development that is a mock DAI with 18 decimals.
    """)

    wait_for_enter()

    print('>>> dai = deploy_mock_dai("Dai", "DAI", 18)')
    dai = deploy_mock_dai("Dai", "DAI", 18, verbose=True)
    return dai


def step_02_deploy_claim(dai: Token) -> ClaimLedger:
    step_header(2, "The Allocation Ledger",
        "Deploy the ledger with an initial price and the payment asset.")

    print("""
    Deployment takes two parameters: the unit price and the payment asset.
    A price of 100 means one base unit costs 100 of DAI's smallest unit.
    The deployer becomes the owner, the only identity allowed to configure
    the sale.
    """)

    wait_for_enter()

    print(">>> claim = deploy_claim(dai, unit_price=100)")
    claim = deploy_claim(dai, unit_price=100, verbose=True)

    section_header("Initial State")
    print(f"Owner:          {claim.owner}")
    print(f"Unit price:     {claim.unit_price}")
    print(f"Sale open:      {claim.sale_open}")
    print(f"Percent cap:    {claim.config.percent_cap:,}")
    print(f"Unit cap:       {claim.config.unit_cap / ONE_UNIT:,.0f} units")
    print(f"Min purchase:   {claim.config.min_purchase / ONE_UNIT} units")
    return claim


def step_03_fund_investor(claim: ClaimLedger, dai: Token):
    step_header(3, "Funding a Purchaser",
        "A buyer needs DAI and must approve the ledger to spend it.")

    amount = CONFIG.investor_funding_dai * CONFIG.dai
    print(f'>>> dai.mint("investor", {CONFIG.investor_funding_dai:,} * 10**18)')
    dai.mint("investor", amount)
    print(f'>>> dai.approve("investor", claim.address, {CONFIG.investor_funding_dai:,} * 10**18)')
    dai.approve("investor", claim.address, amount)

    section_header("Key Insight")
    print("""
    The approval is what lets the ledger pull payment during a purchase.
    Without it, the purchase fails with PaymentTransferFailed and nothing
    in the ledger changes.
    """)


# ============================================================================
# PHASE 2: PURCHASE GATES (Steps 4-6)
# ============================================================================

def step_04_sale_closed(claim: ClaimLedger):
    step_header(4, "The Sale Gate",
        "Nobody can buy until the owner opens the sale.")

    attempt('claim.buy_allocation("investor", "investor", 1000 units)',
            lambda: claim.buy_allocation("investor", "investor", units(1000)))

    print('\n>>> claim.toggle_sale_open("deployer")')
    claim.toggle_sale_open("deployer")
    print(f"Sale open: {claim.sale_open}")

    section_header("Owner Guard")
    attempt('claim.toggle_sale_open("investor")',
            lambda: claim.toggle_sale_open("investor"))


def step_05_whitelist(claim: ClaimLedger):
    step_header(5, "The Whitelist",
        "Each beneficiary may buy only up to its remaining allowance.")

    attempt('claim.buy_allocation("investor", "investor", 1000 units)',
            lambda: claim.buy_allocation("investor", "investor", units(1000)))

    print(f'\n>>> claim.set_whitelist_allowance("deployer", "investor", '
          f'{CONFIG.investor_allowance} units)')
    claim.set_whitelist_allowance("deployer", "investor", units(CONFIG.investor_allowance))

    attempt('claim.buy_allocation("investor", "investor", 10000 units)',
            lambda: claim.buy_allocation("investor", "investor", units(10_000)))


def step_06_minimum(claim: ClaimLedger):
    step_header(6, "The Minimum Purchase",
        "Tiny purchases would earn a zero share, so they are refused.")

    print(f"""
    The share of a purchase is units * percent_cap // unit_cap, truncated.
    The minimum purchase is the smallest amount whose share is at least 1:

        share(MIN_PURCHASE)     = {share(MIN_PURCHASE, UNIT_CAP, PERCENT_CAP)}
        share(MIN_PURCHASE - 1) = {share(MIN_PURCHASE - 1, UNIT_CAP, PERCENT_CAP)}
    """)

    attempt('claim.buy_allocation("investor", "investor", MIN_PURCHASE - 1)',
            lambda: claim.buy_allocation("investor", "investor", MIN_PURCHASE - 1))


# ============================================================================
# PHASE 3: ALLOCATION (Steps 7-8)
# ============================================================================

def step_07_purchase(claim: ClaimLedger, dai: Token):
    step_header(7, "A Successful Purchase",
        "Payment moves into ledger custody and the Term grows.")

    wait_for_enter()

    half = CONFIG.investor_allowance // 2
    for _ in range(2):
        print(f'>>> claim.buy_allocation("investor", "investor", {half} units)')
        claim.buy_allocation("investor", "investor", units(half))

    section_header("Result")
    show_term(claim, "investor")
    print(f"  remaining whitelist: {claim.whitelist_of('investor')}")
    print(f"  DAI in custody:      {dai.balance_of(claim.address):,}")

    section_header("Key Insight")
    print("""
    Two purchases ACCUMULATE. Each one adds its own truncated share, so the
    percent is the sum of the increments. The first purchase also fixed the
    claimer kind to PUBLIC; later purchases never change it.
    """)


def step_08_terms_and_caps(claim: ClaimLedger, dai: Token):
    step_header(8, "Team Terms, Investor Round and the Caps",
        "All allocations share one pool bounded by two global caps.")

    percent, whole = CONFIG.developer_term
    print(f'>>> claim.set_term("deployer", "developer", {percent}, {whole} units, DEVELOPER)')
    claim.set_term("deployer", "developer", percent, units(whole), ClaimerKind.DEVELOPER)
    percent, whole = CONFIG.adviser_term
    print(f'>>> claim.set_term("deployer", "adviser", {percent}, {whole} units, ADVISER)')
    claim.set_term("deployer", "adviser", percent, units(whole), ClaimerKind.ADVISER)

    section_header("Investor Round")
    funding = CONFIG.fund_funding_dai * CONFIG.dai
    dai.mint("fund", funding)
    dai.approve("fund", claim.address, funding)
    claim.set_whitelist_allowance("deployer", "fund", units(CONFIG.fund_allowance))
    print(f'>>> claim.buy_investors_allocation("fund", "fund", {CONFIG.fund_allowance} units)')
    claim.buy_investors_allocation("fund", "fund", units(CONFIG.fund_allowance))

    section_header("Immutable Kind")
    attempt('claim.set_term("deployer", "adviser", 1, 1, DEVELOPER)',
            lambda: claim.set_term("deployer", "adviser", 1, 1, ClaimerKind.DEVELOPER))

    section_header("Capacity")
    attempt('claim.set_term("deployer", "whale", PERCENT_CAP, 0, INVESTOR)',
            lambda: claim.set_term("deployer", "whale", PERCENT_CAP, 0, ClaimerKind.INVESTOR))

    print(f"\nAllocated: {claim.total_percent_allocated:,} / {claim.config.percent_cap:,} percent")
    print(f"Allocated: {claim.total_units_allocated / ONE_UNIT:,.0f} / "
          f"{claim.config.unit_cap / ONE_UNIT:,.0f} units")


# ============================================================================
# PHASE 4: MIGRATION AND SETTLEMENT (Steps 9-10)
# ============================================================================

def step_09_migration(claim: ClaimLedger):
    step_header(9, "Identity Migration",
        "Move an allocation to a new identity in two steps.")

    print("""
    1. PUSH: the holder names the destination
    2. PULL: the destination claims the allocation

    Only the named destination can pull, and only into an empty Term.
    """)

    wait_for_enter()

    print('>>> claim.push_migration("fund", "fund_cold")')
    claim.push_migration("fund", "fund_cold")
    attempt('claim.pull_migration("mallory", "fund")',
            lambda: claim.pull_migration("mallory", "fund"))
    print('>>> claim.pull_migration("fund_cold", "fund")')
    claim.pull_migration("fund_cold", "fund")

    section_header("Result")
    show_term(claim, "fund")
    show_term(claim, "fund_cold")
    print("\nTotals are unchanged: the allocation changed hands.")


def step_10_settlement(claim: ClaimLedger, dai: Token):
    step_header(10, "Withdrawal and Reconciliation",
        "The owner sweeps proceeds; the totals still match every Term.")

    print('>>> claim.toggle_sale_open("deployer")')
    claim.toggle_sale_open("deployer")

    held = dai.balance_of(claim.address)
    print(f'>>> claim.withdraw("deployer", "treasury", dai, {held:,})')
    claim.withdraw("deployer", "treasury", dai, held)
    attempt('claim.withdraw("deployer", "treasury", dai, 1)',
            lambda: claim.withdraw("deployer", "treasury", dai, 1))

    section_header("Allocation Table")
    for who in claim.list_participants():
        show_term(claim, who)

    section_header("Verification")
    result = claim.verify_totals()
    print(f"Valid:      {result['valid']}")
    print(f"Running:    {result['running']}")
    print(f"Recomputed: {result['recomputed']}")
    print(f"Operations: {len(claim.operation_log)} applied")
    print(f"Treasury:   {dai.balance_of('treasury'):,} DAI (smallest unit)")


def main():
    print("=" * 70)
    print("       ALLOCATION LEDGER - INTERACTIVE WALKTHROUGH")
    print("=" * 70)

    if QUICK_MODE:
        print("Running in QUICK mode (no pauses)")
    else:
        print("Running in INTERACTIVE mode (press Enter to advance)")

    wait_for_enter()

    dai = step_01_deploy_dai()
    wait_for_enter()

    claim = step_02_deploy_claim(dai)
    wait_for_enter()

    step_03_fund_investor(claim, dai)
    wait_for_enter()

    step_04_sale_closed(claim)
    wait_for_enter()

    step_05_whitelist(claim)
    wait_for_enter()

    step_06_minimum(claim)
    wait_for_enter()

    step_07_purchase(claim, dai)
    wait_for_enter()

    step_08_terms_and_caps(claim, dai)
    wait_for_enter()

    step_09_migration(claim)
    wait_for_enter()

    step_10_settlement(claim, dai)

    print("\n" + "=" * 70)
    print("       WALKTHROUGH COMPLETE")
    print("=" * 70)
    print("""
    Next steps:
      - See claim/claim.py for the operations and their checks
      - Run tests: pytest tests/
    """)


if __name__ == "__main__":
    main()
