"""
claim - Token-Sale and Vesting Allocation Ledger

Tracks, for a fixed pool of capacity, which participants may buy or receive
allocation units, how much they hold, and their share of the vesting
distribution. Payments move through an external value medium.

Usage:
    from claim import ClaimLedger, ClaimerKind, Token, ONE_UNIT

    dai = Token("Dai", "DAI", 18)
    claim = ClaimLedger(100, dai, owner="deployer")

    dai.mint("investor", 100_000 * 10**18)
    dai.approve("investor", claim.address, 100_000 * 10**18)

    claim.toggle_sale_open("deployer")
    claim.set_whitelist_allowance("deployer", "investor", 1000 * ONE_UNIT)
    claim.buy_allocation("investor", "investor", 1000 * ONE_UNIT)

    claim.set_term("deployer", "adviser", 20_000, 2_000 * ONE_UNIT, ClaimerKind.ADVISER)
"""

# Core types
from .core import (
    ValueMedium,
    ClaimView,
    Term,
    ClaimConfig,
    ClaimerKind,
    OperationRecord,
    share,
    term_totals,
    ClaimError,
    NotAuthorized,
    SaleClosed,
    NotWhitelisted,
    ExceedsAllowance,
    BelowMinimum,
    PaymentTransferFailed,
    CapacityExceeded,
    ImmutableKind,
    NothingToMigrate,
    NoPushRecorded,
    DestinationOccupied,
    WithdrawalFailed,
    MediumError,
    InsufficientBalance,
    InsufficientAllowance,
    DEFAULT_OWNER,
    DEFAULT_LEDGER_NAME,
    DEFAULT_UNIT_PRICE,
    UNIT_DECIMALS,
    ONE_UNIT,
    PERCENT_CAP,
    UNIT_CAP,
    MIN_PURCHASE,
)

# Migration state machine
from .migration import (
    MigrationBook,
    MigrationState,
    PendingMigration,
    MIGRATION_TRANSITIONS,
)

# Value medium
from .medium import Token, TokenTransfer

# Ledger
from .claim import ClaimLedger

# Deployment
from .deploy import deploy_mock_dai, deploy_claim


__all__ = [
    # Core
    'ValueMedium', 'ClaimView', 'Term', 'ClaimConfig', 'ClaimerKind',
    'OperationRecord', 'share', 'term_totals',
    # Exceptions
    'ClaimError', 'NotAuthorized', 'SaleClosed', 'NotWhitelisted',
    'ExceedsAllowance', 'BelowMinimum', 'PaymentTransferFailed',
    'CapacityExceeded', 'ImmutableKind', 'NothingToMigrate', 'NoPushRecorded',
    'DestinationOccupied', 'WithdrawalFailed',
    'MediumError', 'InsufficientBalance', 'InsufficientAllowance',
    # Constants
    'DEFAULT_OWNER', 'DEFAULT_LEDGER_NAME', 'DEFAULT_UNIT_PRICE',
    'UNIT_DECIMALS', 'ONE_UNIT', 'PERCENT_CAP', 'UNIT_CAP', 'MIN_PURCHASE',
    # Migration
    'MigrationBook', 'MigrationState', 'PendingMigration', 'MIGRATION_TRANSITIONS',
    # Medium
    'Token', 'TokenTransfer',
    # Ledger
    'ClaimLedger',
    # Deployment
    'deploy_mock_dai', 'deploy_claim',
]

__version__ = '1.0.0'
