"""
Host execution environment: caller identity, block height and the
contract's own account
"""

import logging
from typing import Optional

from .safe_math import BLOCK_MAX, add_blocks, require_range

logger = logging.getLogger(__name__)


class HostEnv:
    """Supplies call context to the engine; heights never go backwards"""

    def __init__(self, contract_account: str, caller: Optional[str] = None, block_number: int = 1):
        self.contract_account = contract_account
        self._caller = caller
        self._block_number = require_range(block_number, BLOCK_MAX, "block_number")

    def caller(self) -> str:
        if self._caller is None:
            raise RuntimeError("No caller set for this call")
        return self._caller

    def block_number(self) -> int:
        return self._block_number

    def account_id(self) -> str:
        return self.contract_account

    def set_caller(self, account: str) -> None:
        self._caller = account

    def advance_blocks(self, blocks: int = 1) -> int:
        """Move the chain forward and return the new height"""
        require_range(blocks, BLOCK_MAX, "blocks")
        self._block_number = add_blocks(self._block_number, blocks)
        logger.debug("block height now %d", self._block_number)
        return self._block_number

    def set_block(self, height: int) -> None:
        require_range(height, BLOCK_MAX, "height")
        if height < self._block_number:
            raise ValueError(f"Block height cannot decrease ({self._block_number} -> {height})")
        self._block_number = height
