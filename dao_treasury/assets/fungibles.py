"""
In-memory fungible-token ledger (PSP22-style)

Stands in for the chain's assets pallet: per-asset balances, allowances, an
admin and a minimum balance for newly credited accounts.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List

from ..errors import (
    AssetExists,
    BelowMinimum,
    InsufficientAllowance,
    InsufficientBalance,
    UnknownAsset,
    ZeroValue,
)
from ..safe_math import BALANCE_MAX, add_balance, require_range

logger = logging.getLogger(__name__)


@dataclass
class AssetDetails:
    """State of one asset on the ledger"""
    asset_id: int
    admin: str
    min_balance: int
    supply: int = 0
    balances: Dict[str, int] = field(default_factory=dict)
    allowances: Dict[str, Dict[str, int]] = field(default_factory=dict)  # owner -> spender -> amount


class FungiblesLedger:
    """Multi-asset ledger with transfer / approve / allowance semantics"""

    def __init__(self):
        self._assets: Dict[int, AssetDetails] = {}
        self._transfer_history: List[Dict[str, Any]] = []

    def _asset(self, asset_id: int) -> AssetDetails:
        details = self._assets.get(asset_id)
        if details is None:
            raise UnknownAsset(f"Asset {asset_id} does not exist")
        return details

    def create(self, asset_id: int, admin: str, min_balance: int) -> None:
        """Register a new asset administered by ``admin``"""
        require_range(min_balance, BALANCE_MAX, "min_balance")
        if asset_id in self._assets:
            raise AssetExists(f"Asset {asset_id} already exists")

        self._assets[asset_id] = AssetDetails(asset_id, admin, min_balance)
        logger.info("asset %d created (admin %s, min balance %d)", asset_id, admin[:8], min_balance)

    def asset_exists(self, asset_id: int) -> bool:
        return asset_id in self._assets

    def admin_of(self, asset_id: int) -> str:
        return self._asset(asset_id).admin

    def min_balance(self, asset_id: int) -> int:
        return self._asset(asset_id).min_balance

    def total_supply(self, asset_id: int) -> int:
        return self._asset(asset_id).supply

    def balance_of(self, asset_id: int, account: str) -> int:
        """Get token balance for account"""
        return self._asset(asset_id).balances.get(account, 0)

    def allowance(self, asset_id: int, owner: str, spender: str) -> int:
        """Get approved allowance"""
        return self._asset(asset_id).allowances.get(owner, {}).get(spender, 0)

    def approve(self, asset_id: int, owner: str, spender: str, value: int) -> None:
        """Approve spender to transfer tokens on behalf of owner"""
        details = self._asset(asset_id)
        require_range(value, BALANCE_MAX, "value")
        details.allowances.setdefault(owner, {})[spender] = value

    def mint_into(self, asset_id: int, account: str, amount: int) -> None:
        """Create ``amount`` new tokens in ``account``"""
        details = self._asset(asset_id)
        self._check_credit(details, account, amount)

        details.balances[account] = add_balance(details.balances.get(account, 0), amount)
        details.supply = add_balance(details.supply, amount)
        self._record(asset_id, None, account, amount)

    def transfer(self, asset_id: int, from_account: str, to_account: str, amount: int) -> None:
        """Transfer tokens between accounts"""
        details = self._asset(asset_id)
        self._check_transfer(details, from_account, to_account, amount)
        self._apply_transfer(details, from_account, to_account, amount)

    def transfer_from(self, asset_id: int, spender: str, from_account: str, to_account: str, amount: int) -> None:
        """Transfer tokens using the allowance granted to ``spender``"""
        details = self._asset(asset_id)
        allowed = self.allowance(asset_id, from_account, spender)
        if allowed < amount:
            raise InsufficientAllowance(
                f"Allowance {allowed} for {spender[:8]} is below {amount}"
            )
        self._check_transfer(details, from_account, to_account, amount)

        self._apply_transfer(details, from_account, to_account, amount)
        details.allowances[from_account][spender] = allowed - amount

    def force_transfer(self, asset_id: int, from_account: str, to_account: str, amount: int) -> None:
        """Privileged transfer that needs no allowance (runtime call)"""
        self.transfer(asset_id, from_account, to_account, amount)

    def get_transfer_history(self) -> List[Dict[str, Any]]:
        """Get token transfer history"""
        return self._transfer_history.copy()

    # Checks run before any write so a failed call changes nothing

    def _check_credit(self, details: AssetDetails, account: str, amount: int) -> None:
        require_range(amount, BALANCE_MAX, "amount")
        if amount == 0:
            raise ZeroValue("Amount must be positive")
        new_balance = details.balances.get(account, 0) + amount
        if new_balance < details.min_balance:
            raise BelowMinimum(
                f"Balance {new_balance} would be below the minimum {details.min_balance}"
            )

    def _check_transfer(self, details: AssetDetails, from_account: str, to_account: str, amount: int) -> None:
        self._check_credit(details, to_account, amount)
        from_balance = details.balances.get(from_account, 0)
        if from_balance < amount:
            raise InsufficientBalance(f"Balance {from_balance} is below {amount}")

    def _apply_transfer(self, details: AssetDetails, from_account: str, to_account: str, amount: int) -> None:
        if from_account == to_account:
            self._record(details.asset_id, from_account, to_account, amount)
            return
        details.balances[from_account] = details.balances.get(from_account, 0) - amount
        details.balances[to_account] = add_balance(details.balances.get(to_account, 0), amount)
        self._record(details.asset_id, from_account, to_account, amount)

    def _record(self, asset_id: int, from_account, to_account, amount: int) -> None:
        self._transfer_history.append({
            'asset_id': asset_id,
            'from': from_account,
            'to': to_account,
            'amount': amount,
            'sequence': len(self._transfer_history),
        })
