"""
Treasury collaborators: fungible-token ledger and the privileged mover
"""

from .fungibles import FungiblesLedger, AssetDetails
from .mover import TreasuryMover, RuntimeTreasuryMover

__all__ = [
    "FungiblesLedger",
    "AssetDetails",
    "TreasuryMover",
    "RuntimeTreasuryMover"
]
