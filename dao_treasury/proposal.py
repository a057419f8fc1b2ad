"""
Spending proposals: data model, encoding and the lazy finalization rule
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .codec import Encoder, Decoder
from .errors import MalformedRecord
from .safe_math import (
    BALANCE_MAX,
    BLOCK_MAX,
    U8_MAX,
    U32_MAX,
    add_balance,
    add_blocks,
    require_range,
)
from .storage import Mapping

# Description length must fit the one-byte length prefix, exclusive
MAX_DESCRIPTION_LENGTH = U8_MAX


class ProposalStatus(Enum):
    SUBMITTED = "submitted"
    APPROVED = "approved"
    REJECTED = "rejected"
    EXECUTED = "executed"

    @property
    def code(self) -> int:
        return _STATUS_CODES.index(self)

    @classmethod
    def from_code(cls, code: int) -> 'ProposalStatus':
        if code >= len(_STATUS_CODES):
            raise MalformedRecord(f"unknown proposal status {code}")
        return _STATUS_CODES[code]


_STATUS_CODES = list(ProposalStatus)


@dataclass
class Votes:
    """Voting window and running tally of a proposal"""
    vote_start: int
    vote_end: int
    yes_votes: int = 0
    no_votes: int = 0

    def __post_init__(self):
        require_range(self.vote_start, BLOCK_MAX, "vote_start")
        require_range(self.vote_end, BLOCK_MAX, "vote_end")
        require_range(self.yes_votes, BALANCE_MAX, "yes_votes")
        require_range(self.no_votes, BALANCE_MAX, "no_votes")

    @classmethod
    def open_window(cls, height: int, voting_period: int) -> 'Votes':
        return cls(vote_start=height, vote_end=add_blocks(height, voting_period))

    def has_ended(self, height: int) -> bool:
        """True once ``height`` is past the last voting block"""
        return height > self.vote_end

    def is_approving(self) -> bool:
        # Strictly greater: ties reject
        return self.yes_votes > self.no_votes

    def record(self, approve: bool, weight: int) -> None:
        if approve:
            self.yes_votes = add_balance(self.yes_votes, weight)
        else:
            self.no_votes = add_balance(self.no_votes, weight)


@dataclass
class Transaction:
    """Payout made if the proposal is approved"""
    beneficiary: str
    amount: int

    def __post_init__(self):
        if not isinstance(self.beneficiary, str):
            raise TypeError("beneficiary must be a string")
        # Stored behind a one-byte length prefix
        if len(self.beneficiary.encode('utf-8')) >= U8_MAX:
            raise ValueError(f"beneficiary must be shorter than {U8_MAX} bytes")
        require_range(self.amount, BALANCE_MAX, "amount")


@dataclass
class Proposal:
    """Funding proposal submitted to the DAO"""
    proposal_id: int
    description: bytes = b""
    status: ProposalStatus = ProposalStatus.SUBMITTED
    votes: Optional[Votes] = None
    transaction: Optional[Transaction] = None

    def __post_init__(self):
        require_range(self.proposal_id, U32_MAX, "proposal_id")
        if isinstance(self.description, str):
            self.description = self.description.encode('utf-8')

    def encode(self) -> bytes:
        enc = Encoder()
        enc.u32(self.proposal_id).u8(self.status.code).short_bytes(self.description)

        enc.flag(self.votes is not None)
        if self.votes is not None:
            enc.u32(self.votes.vote_start).u32(self.votes.vote_end)
            enc.u128(self.votes.yes_votes).u128(self.votes.no_votes)

        enc.flag(self.transaction is not None)
        if self.transaction is not None:
            enc.short_bytes(self.transaction.beneficiary.encode('utf-8'))
            enc.u128(self.transaction.amount)

        return enc.finish()

    @classmethod
    def decode(cls, data: bytes) -> 'Proposal':
        dec = Decoder(data)
        proposal_id = dec.u32()
        status = ProposalStatus.from_code(dec.u8())
        description = dec.short_bytes()

        votes = None
        if dec.flag():
            votes = Votes(dec.u32(), dec.u32(), dec.u128(), dec.u128())

        transaction = None
        if dec.flag():
            try:
                beneficiary = dec.short_bytes().decode('utf-8')
            except UnicodeDecodeError:
                raise MalformedRecord("beneficiary is not valid utf-8")
            transaction = Transaction(beneficiary, dec.u128())

        dec.finish()
        return cls(proposal_id, description, status, votes, transaction)

    def to_dict(self) -> dict:
        return {
            'proposal_id': self.proposal_id,
            'description': self.description.decode('utf-8', errors='replace'),
            'status': self.status.value,
            'votes': None if self.votes is None else {
                'vote_start': self.votes.vote_start,
                'vote_end': self.votes.vote_end,
                'yes_votes': self.votes.yes_votes,
                'no_votes': self.votes.no_votes,
            },
            'transaction': None if self.transaction is None else {
                'beneficiary': self.transaction.beneficiary,
                'amount': self.transaction.amount,
            },
        }


def finalize_if_expired(proposal: Proposal, height: int) -> bool:
    """
    Settle a submitted proposal whose voting window has closed.

    Moves ``SUBMITTED`` to ``APPROVED`` when yes votes strictly exceed no votes
    and to ``REJECTED`` otherwise. Returns True when the status changed.
    """
    votes = proposal.votes
    if votes is None or not votes.has_ended(height):
        return False
    if proposal.status != ProposalStatus.SUBMITTED:
        return False

    if votes.is_approving():
        proposal.status = ProposalStatus.APPROVED
    else:
        proposal.status = ProposalStatus.REJECTED
    return True


class ProposalStore(Mapping[int, Proposal]):
    """Proposal id -> Proposal"""

    def __init__(self):
        super().__init__(Proposal.encode, Proposal.decode)


class BallotStore(Mapping[tuple, bool]):
    """(proposal id, account) -> ballot, for per-proposal double-vote checks"""

    def __init__(self):
        super().__init__(_encode_ballot, _decode_ballot)

    def has_voted(self, proposal_id: int, account: str) -> bool:
        return self.contains((proposal_id, account))

    def record(self, proposal_id: int, account: str, approve: bool) -> None:
        self.insert((proposal_id, account), approve)


def _encode_ballot(approve: bool) -> bytes:
    return Encoder().flag(approve).finish()


def _decode_ballot(data: bytes) -> bool:
    dec = Decoder(data)
    approve = dec.flag()
    dec.finish()
    return approve
