"""
Error taxonomy for the governance engine and the treasury ledger

Every error carries a stable ``kind`` string so hosts can report it without
depending on the class hierarchy.
"""


class DaoError(ValueError):
    """Base class for every failure surfaced to a DAO caller"""

    kind = "DaoError"

    def __init__(self, message: str = ""):
        super().__init__(message or self.kind)

    def to_dict(self) -> dict:
        return {'error': self.kind, 'message': str(self)}


# Structural

class ProposalNotFound(DaoError):
    """This proposal does not exist"""
    kind = "ProposalNotFound"


class MemberNotFound(DaoError):
    """Caller is not a member of this DAO"""
    kind = "MemberNotFound"


class MalformedProposal(DaoError):
    """Stored proposal lacks its voting window or payout"""
    kind = "MalformedProposal"


class MalformedRecord(DaoError):
    """Encoded record could not be decoded"""
    kind = "MalformedRecord"


# Temporal

class VotingPeriodEnded(DaoError):
    """The end of the voting period has been reached"""
    kind = "VotingPeriodEnded"


class VotingPeriodNotEnded(DaoError):
    """The voting period for this proposal is still ongoing"""
    kind = "VotingPeriodNotEnded"


# Policy

class AlreadyVoted(DaoError):
    """Member already voted inside this voting window"""
    kind = "AlreadyVoted"


class ExceedsMaxDescriptionLength(DaoError):
    """The proposal description is too long"""
    kind = "ExceedsMaxDescriptionLength"


class ProposalExecuted(DaoError):
    """This proposal has already been executed"""
    kind = "ProposalExecuted"


class ProposalRejected(DaoError):
    """This proposal did not gather a majority"""
    kind = "ProposalRejected"


# Resource

class InsufficientTreasuryFunds(DaoError):
    """There are not enough funds in the DAO treasury"""
    kind = "InsufficientTreasuryFunds"


# Ledger errors pass through the engine unchanged

class LedgerError(DaoError):
    """Failure reported by the fungible-token ledger"""
    kind = "LedgerError"


class UnknownAsset(LedgerError):
    kind = "UnknownAsset"


class AssetExists(LedgerError):
    kind = "AssetExists"


class ZeroValue(LedgerError):
    kind = "ZeroValue"


class InsufficientBalance(LedgerError):
    kind = "InsufficientBalance"


class InsufficientAllowance(LedgerError):
    kind = "InsufficientAllowance"


class BelowMinimum(LedgerError):
    kind = "BelowMinimum"
