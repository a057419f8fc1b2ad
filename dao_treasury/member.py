from dataclasses import dataclass, asdict

from .codec import Encoder, Decoder
from .safe_math import BALANCE_MAX, BLOCK_MAX, add_balance, require_range
from .storage import Mapping


@dataclass
class Member:
    """Stake record of a DAO member"""
    voting_power: int = 0  # cumulative stake, saturating
    last_vote: int = 0  # block height of the member's last ballot

    def __post_init__(self):
        require_range(self.voting_power, BALANCE_MAX, "voting_power")
        require_range(self.last_vote, BLOCK_MAX, "last_vote")

    def staked(self, amount: int) -> 'Member':
        """Member after adding ``amount`` to its stake"""
        return Member(add_balance(self.voting_power, amount), self.last_vote)

    def voted_at(self, height: int) -> 'Member':
        return Member(self.voting_power, height)

    def encode(self) -> bytes:
        return Encoder().u128(self.voting_power).u32(self.last_vote).finish()

    @classmethod
    def decode(cls, data: bytes) -> 'Member':
        dec = Decoder(data)
        member = cls(voting_power=dec.u128(), last_vote=dec.u32())
        dec.finish()
        return member

    def to_dict(self) -> dict:
        return asdict(self)


class MembershipStore(Mapping[str, Member]):
    """Account id -> Member"""

    def __init__(self):
        super().__init__(Member.encode, Member.decode)

    def get_or_default(self, account: str) -> Member:
        """Stored member, or a zero-power record for unknown accounts"""
        member = self.get(account)
        return member if member is not None else Member()

    def is_member(self, account: str) -> bool:
        return self.contains(account)

    def total_voting_power(self) -> int:
        total = 0
        for _, member in self.items():
            total = add_balance(total, member.voting_power)
        return total
