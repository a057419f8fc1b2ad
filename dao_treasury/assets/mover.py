"""
Treasury mover capability

Paying out of the treasury is a privileged runtime call: the contract's own
funds move without an allowance, unlike the ``transfer_from`` used when
members join. Keeping it behind its own interface lets tests substitute the
two paths independently.
"""

import logging

logger = logging.getLogger(__name__)


class TreasuryMover:
    """Moves funds out of the treasury account"""

    def move(self, asset_id: int, treasury: str, beneficiary: str, amount: int) -> None:
        raise NotImplementedError


class RuntimeTreasuryMover(TreasuryMover):
    """Mover backed by the ledger's privileged transfer"""

    def __init__(self, ledger):
        self.ledger = ledger

    def move(self, asset_id: int, treasury: str, beneficiary: str, amount: int) -> None:
        self.ledger.force_transfer(asset_id, treasury, beneficiary, amount)
        logger.debug("moved %d of asset %d to %s", amount, asset_id, beneficiary[:8])
