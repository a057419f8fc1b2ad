"""
DAO Treasury - stake-weighted governance over a shared token treasury
"""

from .engine import Dao
from .config import GovernanceConfig
from .member import Member
from .proposal import Proposal, ProposalStatus, Votes, Transaction, finalize_if_expired
from .host import HostEnv
from .events import EventSink, Created, Transfer, Approval, Voted
from .errors import DaoError, LedgerError

__version__ = "0.1.0"
__all__ = [
    "Dao",
    "GovernanceConfig",
    "Member",
    "Proposal",
    "ProposalStatus",
    "Votes",
    "Transaction",
    "finalize_if_expired",
    "HostEnv",
    "EventSink",
    "Created",
    "Transfer",
    "Approval",
    "Voted",
    "DaoError",
    "LedgerError"
]
