"""
Treasury governance engine

Members stake the DAO asset to gain voting power, anyone may propose a
payout from the treasury, members vote during a fixed window of blocks and an
approved proposal can be executed once, moving the funds to its beneficiary.

Collaborators are injected:

- ``env``: host environment giving the caller, the block height and the
  contract's account (``HostEnv``)
- ``ledger``: fungible-token ledger exposing ``create``, ``balance_of`` and
  ``transfer_from`` (``FungiblesLedger``)
- ``mover``: privileged treasury payout (``TreasuryMover``)
- ``events``: append-only sink (``EventSink``)

Every call reads the current height from ``env`` and works on decoded copies
of stored records; all checks run before the first write, so a failed call
commits nothing. The one exception is lazy finalization, which settles a
proposal whose window has closed even though the call itself then fails.
"""

import logging
from typing import Any, Dict, List, Optional, Union

from .assets.mover import RuntimeTreasuryMover, TreasuryMover
from .config import GovernanceConfig, BALLOT_SCOPE_WINDOW
from .errors import (
    AlreadyVoted,
    ExceedsMaxDescriptionLength,
    InsufficientTreasuryFunds,
    MalformedProposal,
    MemberNotFound,
    ProposalExecuted,
    ProposalNotFound,
    ProposalRejected,
    VotingPeriodEnded,
    VotingPeriodNotEnded,
)
from .events import Approval, Created, EventSink, Transfer, Voted
from .member import Member, MembershipStore
from .proposal import (
    MAX_DESCRIPTION_LENGTH,
    BallotStore,
    Proposal,
    ProposalStatus,
    ProposalStore,
    Transaction,
    Votes,
    finalize_if_expired,
)
from .safe_math import BALANCE_MAX, U32_MAX, require_range, saturating_add

logger = logging.getLogger(__name__)


class Dao:
    """DAO whose treasury funds proposals selected by its members"""

    def __init__(self, env, ledger, config: GovernanceConfig,
                 mover: Optional[TreasuryMover] = None,
                 events: Optional[EventSink] = None):
        self.env = env
        self.ledger = ledger
        self.config = config
        self.mover = mover if mover is not None else RuntimeTreasuryMover(ledger)
        self.events = events if events is not None else EventSink()

        self.members = MembershipStore()
        self.proposals = ProposalStore()
        self.ballots = BallotStore()
        self._proposals_created = 0

    @classmethod
    def new(cls, env, ledger, asset_id: int, voting_period: int, minimum_balance: int,
            mover: Optional[TreasuryMover] = None,
            events: Optional[EventSink] = None,
            ballot_scope: str = BALLOT_SCOPE_WINDOW) -> 'Dao':
        """
        Instantiate a DAO and create its asset on the ledger.

        The contract account becomes the asset admin. Ledger failures (for
        example an asset id already in use) propagate unchanged.
        """
        config = GovernanceConfig(
            asset_id=asset_id,
            voting_period=voting_period,
            minimum_balance=minimum_balance,
            ballot_scope=ballot_scope,
        )
        return cls.from_config(env, ledger, config, mover=mover, events=events)

    @classmethod
    def from_config(cls, env, ledger, config: GovernanceConfig,
                    mover: Optional[TreasuryMover] = None,
                    events: Optional[EventSink] = None) -> 'Dao':
        """Instantiate a DAO from a prepared configuration"""
        contract = env.account_id()
        ledger.create(config.asset_id, contract, config.minimum_balance)

        instance = cls(env, ledger, config, mover=mover, events=events)
        instance.events.emit(Created(id=config.asset_id, creator=contract, admin=contract))
        logger.info(
            "DAO instantiated for asset %d (voting period %d blocks, %s ballots)",
            config.asset_id, config.voting_period, config.ballot_scope,
        )
        return instance

    @property
    def contract_account(self) -> str:
        return self.env.account_id()

    # Membership

    def join(self, amount: int) -> None:
        """
        Stake ``amount`` of the DAO asset and add it to the caller's voting power.

        The caller must have approved the contract for at least ``amount``.
        """
        caller = self.env.caller()
        contract = self.env.account_id()

        self.ledger.transfer_from(self.config.asset_id, contract, caller, contract, amount)

        member = self.members.get_or_default(caller).staked(amount)
        self.members.insert(caller, member)

        self.events.emit(Transfer(from_account=caller, to_account=contract, value=amount))
        logger.info("member %s joined with %d (voting power %d)", caller[:8], amount, member.voting_power)

    # Proposals

    def create_proposal(self, beneficiary: str, amount: int, description: Union[bytes, str]) -> int:
        """
        Submit a payout proposal and return its id.

        Open to any caller. The voting window starts at the current block and
        lasts for the configured voting period.
        """
        if not isinstance(beneficiary, str):
            raise TypeError(f"beneficiary must be an account id string, got {type(beneficiary).__name__}")

        caller = self.env.caller()
        contract = self.env.account_id()
        height = self.env.block_number()

        if isinstance(description, str):
            description = description.encode('utf-8')
        if len(description) >= MAX_DESCRIPTION_LENGTH:
            logger.debug("proposal by %s rejected: description of %d bytes", caller[:8], len(description))
            raise ExceedsMaxDescriptionLength(
                f"Description must be shorter than {MAX_DESCRIPTION_LENGTH} bytes, got {len(description)}"
            )
        require_range(amount, BALANCE_MAX, "amount")

        proposal_id = self._proposals_created
        proposal = Proposal(
            proposal_id=proposal_id,
            description=bytes(description),
            status=ProposalStatus.SUBMITTED,
            votes=Votes.open_window(height, self.config.voting_period),
            transaction=Transaction(beneficiary=beneficiary, amount=amount),
        )
        self.proposals.insert(proposal_id, proposal)
        self._proposals_created = saturating_add(self._proposals_created, 1, U32_MAX)

        self.events.emit(Created(id=proposal_id, creator=caller, admin=contract))
        logger.info(
            "proposal %d created by %s: %d to %s, voting until block %d",
            proposal_id, caller[:8], amount, beneficiary[:8], proposal.votes.vote_end,
        )
        return proposal_id

    def vote(self, proposal_id: int, approve: bool) -> None:
        """Cast the caller's stake for or against a proposal"""
        caller = self.env.caller()
        height = self.env.block_number()

        proposal = self._load(proposal_id)
        votes = proposal.votes
        if votes is None:
            raise MalformedProposal(f"Proposal {proposal_id} has no voting window")

        if votes.has_ended(height):
            self._settle(proposal, height)
            logger.debug("vote by %s on proposal %d refused: window closed", caller[:8], proposal_id)
            raise VotingPeriodEnded(f"Voting on proposal {proposal_id} ended at block {votes.vote_end}")

        member = self.members.get(caller)
        if member is None:
            raise MemberNotFound(f"{caller[:8]} is not a member")

        if self._has_voted(proposal_id, caller, member, votes):
            logger.debug("vote by %s on proposal %d refused: already voted", caller[:8], proposal_id)
            raise AlreadyVoted(f"{caller[:8]} already voted in this window")

        votes.record(approve, member.voting_power)
        self.proposals.insert(proposal_id, proposal)
        self.members.insert(caller, member.voted_at(height))
        if self.config.per_proposal_ballots:
            self.ballots.record(proposal_id, caller, approve)

        self.events.emit(Voted(who=caller, when=height))
        logger.info(
            "%s voted %s on proposal %d with %d (yes %d / no %d)",
            caller[:8], "yes" if approve else "no", proposal_id,
            member.voting_power, votes.yes_votes, votes.no_votes,
        )

    def execute_proposal(self, proposal_id: int) -> None:
        """Pay out an approved proposal once its voting window has closed"""
        height = self.env.block_number()

        proposal = self._load(proposal_id)
        votes = proposal.votes
        transaction = proposal.transaction
        if votes is None or transaction is None:
            raise MalformedProposal(f"Proposal {proposal_id} lacks its voting window or payout")

        if not votes.has_ended(height):
            raise VotingPeriodNotEnded(f"Voting on proposal {proposal_id} runs until block {votes.vote_end}")

        self._settle(proposal, height)

        if proposal.status == ProposalStatus.EXECUTED:
            raise ProposalExecuted(f"Proposal {proposal_id} was already executed")

        if not votes.is_approving():
            raise ProposalRejected(
                f"Proposal {proposal_id} rejected ({votes.yes_votes} yes / {votes.no_votes} no)"
            )

        contract = self.env.account_id()
        treasury = self.ledger.balance_of(self.config.asset_id, contract)
        if not treasury > transaction.amount:
            raise InsufficientTreasuryFunds(
                f"Treasury holds {treasury}, payout of {transaction.amount} needs more"
            )

        # Status only flips once the funds have moved
        self.mover.move(self.config.asset_id, contract, transaction.beneficiary, transaction.amount)

        proposal.status = ProposalStatus.EXECUTED
        self.proposals.insert(proposal_id, proposal)

        self.events.emit(Transfer(
            from_account=contract,
            to_account=transaction.beneficiary,
            value=transaction.amount,
        ))
        self.events.emit(Approval(owner=contract, spender=contract, value=transaction.amount))
        logger.info(
            "proposal %d executed: %d paid to %s",
            proposal_id, transaction.amount, transaction.beneficiary[:8],
        )

    # Queries

    def get_member(self, account: str) -> Member:
        return self.members.get_or_default(account)

    def get_proposal(self, proposal_id: int) -> Optional[Proposal]:
        return self.proposals.get(proposal_id)

    def proposal_count(self) -> int:
        """Number of proposals created so far"""
        return self._proposals_created

    def treasury_balance(self) -> int:
        return self.ledger.balance_of(self.config.asset_id, self.env.account_id())

    def total_voting_power(self) -> int:
        """Sum of all member stakes, saturating"""
        return self.members.total_voting_power()

    def ballot(self, proposal_id: int, account: str) -> Optional[bool]:
        """
        Recorded ballot of ``account`` on a proposal.

        Only per-proposal ballots are stored; with window-scoped ballots this
        is always None.
        """
        return self.ballots.get((proposal_id, account))

    def active_proposals(self) -> List[Proposal]:
        """Submitted proposals still accepting votes at the current height"""
        height = self.env.block_number()
        return [
            proposal for _, proposal in self.proposals.items()
            if proposal.status == ProposalStatus.SUBMITTED
            and proposal.votes is not None
            and not proposal.votes.has_ended(height)
        ]

    def proposal_results(self, proposal_id: int) -> Dict[str, Any]:
        """Tally, window and projected outcome of a proposal"""
        proposal = self._load(proposal_id)
        votes = proposal.votes
        if votes is None:
            raise MalformedProposal(f"Proposal {proposal_id} has no voting window")

        height = self.env.block_number()
        return {
            'proposal_id': proposal_id,
            'status': proposal.status.value,
            'yes_votes': votes.yes_votes,
            'no_votes': votes.no_votes,
            'vote_start': votes.vote_start,
            'vote_end': votes.vote_end,
            'voting_open': not votes.has_ended(height),
            'approving': votes.is_approving(),
        }

    # Internals

    def _load(self, proposal_id: int) -> Proposal:
        proposal = self.proposals.get(proposal_id)
        if proposal is None:
            raise ProposalNotFound(f"Proposal {proposal_id} does not exist")
        return proposal

    def _settle(self, proposal: Proposal, height: int) -> None:
        if finalize_if_expired(proposal, height):
            self.proposals.insert(proposal.proposal_id, proposal)
            logger.info("proposal %d finalized as %s", proposal.proposal_id, proposal.status.value)

    def _has_voted(self, proposal_id: int, account: str, member: Member, votes: Votes) -> bool:
        if self.config.per_proposal_ballots:
            return self.ballots.has_voted(proposal_id, account)
        return member.last_vote >= votes.vote_start
