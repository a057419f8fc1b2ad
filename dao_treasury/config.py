import os
from dataclasses import dataclass, asdict
from typing import Mapping, Optional

from .safe_math import BALANCE_MAX, BLOCK_MAX, U32_MAX, require_range

BALLOT_SCOPE_WINDOW = "window"
BALLOT_SCOPE_PROPOSAL = "proposal"


@dataclass(frozen=True)
class GovernanceConfig:
    """Engine configuration, fixed at instantiation"""

    asset_id: int  # ledger asset backing the treasury
    voting_period: int  # blocks
    minimum_balance: int  # asset existential deposit

    # "window": one ballot per member per overlapping voting window (last_vote marker)
    # "proposal": one ballot per member per proposal
    ballot_scope: str = BALLOT_SCOPE_WINDOW

    def __post_init__(self):
        require_range(self.asset_id, U32_MAX, "asset_id")
        require_range(self.voting_period, BLOCK_MAX, "voting_period")
        require_range(self.minimum_balance, BALANCE_MAX, "minimum_balance")
        if self.ballot_scope not in (BALLOT_SCOPE_WINDOW, BALLOT_SCOPE_PROPOSAL):
            raise ValueError(f"Unknown ballot scope {self.ballot_scope!r}")

    @classmethod
    def devnet(cls, asset_id: int = 1) -> 'GovernanceConfig':
        """Short windows for local testing"""
        return cls(
            asset_id=asset_id,
            voting_period=10,
            minimum_balance=10_000,
        )

    @classmethod
    def standard(cls, asset_id: int = 1) -> 'GovernanceConfig':
        """Production-like configuration"""
        return cls(
            asset_id=asset_id,
            voting_period=100_800,  # ~1 week of 6s blocks
            minimum_balance=10_000_000_000,
        )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'GovernanceConfig':
        """
        Preset named by DAO_PRESET ("devnet" or "standard"), overridden by the
        other DAO_* environment variables
        """
        env = os.environ if environ is None else environ
        presets = {"devnet": cls.devnet, "standard": cls.standard}
        preset = env.get("DAO_PRESET", "devnet")
        if preset not in presets:
            raise ValueError(f"Unknown preset {preset!r}")
        base = presets[preset]()
        return cls(
            asset_id=int(env.get("DAO_ASSET_ID", base.asset_id)),
            voting_period=int(env.get("DAO_VOTING_PERIOD", base.voting_period)),
            minimum_balance=int(env.get("DAO_MIN_BALANCE", base.minimum_balance)),
            ballot_scope=env.get("DAO_BALLOT_SCOPE", base.ballot_scope),
        )

    @property
    def per_proposal_ballots(self) -> bool:
        return self.ballot_scope == BALLOT_SCOPE_PROPOSAL

    def to_dict(self) -> dict:
        return asdict(self)
