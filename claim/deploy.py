"""
deploy.py - Construct a value medium and a ledger the way a deployment does

Deployment is a one-shot step: create the payment asset (a mock DAI in
development), then create the ledger with its two construction parameters,
an initial unit price and the payment asset.
"""

from __future__ import annotations
from typing import Optional

from .claim import ClaimLedger
from .core import ClaimConfig, ValueMedium, DEFAULT_OWNER, DEFAULT_UNIT_PRICE
from .medium import Token


def deploy_mock_dai(
    name: str = "Dai",
    symbol: str = "DAI",
    decimals: int = 18,
    verbose: bool = True,
) -> Token:
    """Create the development payment token."""
    token = Token(name, symbol, decimals, verbose=verbose)
    if verbose:
        print(f"MOCK {symbol} DEPLOYED: {token!r}")
        print(f"WITH PARAMS: {name!r}, {symbol!r}, {decimals}")
    return token


def deploy_claim(
    medium: ValueMedium,
    unit_price: int = DEFAULT_UNIT_PRICE,
    owner: str = DEFAULT_OWNER,
    config: Optional[ClaimConfig] = None,
    verbose: bool = True,
) -> ClaimLedger:
    """
    Create a ClaimLedger owned by owner.

    Args:
        medium: Asset accepted as payment
        unit_price: Initial price of one base unit (default: 100, i.e. $0.01)
        owner: Deploying identity, becomes the administrative identity
        config: Optional cap configuration
        verbose: Print what was deployed and pass verbosity to the ledger

    Returns:
        The new ledger, sale closed and with no allocations
    """
    claim = ClaimLedger(unit_price, medium, owner=owner, config=config, verbose=verbose)
    if verbose:
        print(f"CLAIM DEPLOYED: {claim!r}")
        print(f"WITH PARAMS: {unit_price}, {medium!r}")
    return claim
