import unittest

from dao_treasury.config import GovernanceConfig
from dao_treasury.errors import MalformedRecord
from dao_treasury.member import Member, MembershipStore
from dao_treasury.proposal import (
    BallotStore,
    Proposal,
    ProposalStatus,
    ProposalStore,
    Transaction,
    Votes,
    finalize_if_expired,
)
from dao_treasury.safe_math import BALANCE_MAX, BLOCK_MAX


class TestProposalModel(unittest.TestCase):

    def setUp(self):
        """Set up test fixtures"""
        self.proposal = Proposal(
            proposal_id=3,
            description="Fund the indexer",
            votes=Votes(vote_start=100, vote_end=110, yes_votes=500, no_votes=200),
            transaction=Transaction(beneficiary="02" + "ab" * 32, amount=1_000),
        )

    def test_string_description_is_encoded(self):
        self.assertEqual(self.proposal.description, b"Fund the indexer")

    def test_encoding_roundtrip(self):
        decoded = Proposal.decode(self.proposal.encode())
        self.assertEqual(decoded, self.proposal)

    def test_encoding_layout(self):
        """Id, status and length-prefixed description lead the record"""
        raw = self.proposal.encode()
        self.assertEqual(raw[:4], (3).to_bytes(4, 'little'))
        self.assertEqual(raw[4], 0)
        self.assertEqual(raw[5], len(b"Fund the indexer"))

    def test_optional_fields_roundtrip(self):
        bare = Proposal(proposal_id=1, status=ProposalStatus.REJECTED)
        self.assertEqual(bare.encode(), b"\x01\x00\x00\x00\x02\x00\x00\x00")
        self.assertEqual(Proposal.decode(bare.encode()), bare)

    def test_truncated_record(self):
        with self.assertRaises(MalformedRecord):
            Proposal.decode(self.proposal.encode()[:-1])

    def test_trailing_bytes(self):
        with self.assertRaises(MalformedRecord):
            Proposal.decode(self.proposal.encode() + b"\x00")

    def test_unknown_status(self):
        raw = bytearray(self.proposal.encode())
        raw[4] = 9
        with self.assertRaises(MalformedRecord):
            Proposal.decode(bytes(raw))

    def test_dict_form(self):
        data = self.proposal.to_dict()
        self.assertEqual(data['status'], 'submitted')
        self.assertEqual(data['transaction']['amount'], 1_000)
        self.assertEqual(data['description'], "Fund the indexer")

    def test_out_of_range_values(self):
        with self.assertRaises(ValueError):
            Votes(vote_start=0, vote_end=BLOCK_MAX + 1)
        with self.assertRaises(ValueError):
            Transaction(beneficiary="bob", amount=-1)

    def test_beneficiary_validation(self):
        with self.assertRaises(TypeError):
            Transaction(beneficiary=123, amount=1)
        with self.assertRaises(ValueError):
            Transaction(beneficiary="b" * 255, amount=1)
        self.assertEqual(Transaction(beneficiary="b" * 254, amount=1).amount, 1)


class TestVotes(unittest.TestCase):

    def test_window_saturates(self):
        votes = Votes.open_window(BLOCK_MAX - 2, 10)
        self.assertEqual(votes.vote_end, BLOCK_MAX)

    def test_window_bounds(self):
        votes = Votes.open_window(5, 10)
        self.assertFalse(votes.has_ended(15))
        self.assertTrue(votes.has_ended(16))

    def test_tally_saturates(self):
        votes = Votes(1, 2, yes_votes=BALANCE_MAX - 1)
        votes.record(True, 10)
        self.assertEqual(votes.yes_votes, BALANCE_MAX)


class TestFinalization(unittest.TestCase):

    def make(self, yes, no, status=ProposalStatus.SUBMITTED):
        return Proposal(proposal_id=0, status=status, votes=Votes(1, 11, yes, no))

    def test_open_window_is_untouched(self):
        proposal = self.make(5, 1)
        self.assertFalse(finalize_if_expired(proposal, 11))
        self.assertEqual(proposal.status, ProposalStatus.SUBMITTED)

    def test_majority_approves(self):
        proposal = self.make(5, 1)
        self.assertTrue(finalize_if_expired(proposal, 12))
        self.assertEqual(proposal.status, ProposalStatus.APPROVED)

    def test_tie_rejects(self):
        proposal = self.make(5, 5)
        self.assertTrue(finalize_if_expired(proposal, 12))
        self.assertEqual(proposal.status, ProposalStatus.REJECTED)

    def test_settled_proposals_are_untouched(self):
        for status in (ProposalStatus.APPROVED, ProposalStatus.REJECTED, ProposalStatus.EXECUTED):
            proposal = self.make(0, 5, status=status)
            self.assertFalse(finalize_if_expired(proposal, 50))
            self.assertEqual(proposal.status, status)

    def test_missing_window(self):
        self.assertFalse(finalize_if_expired(Proposal(proposal_id=0), 50))


class TestStores(unittest.TestCase):

    def test_store_returns_copies(self):
        """Changing a loaded record does not touch storage until insert"""
        store = ProposalStore()
        store.insert(0, Proposal(proposal_id=0, votes=Votes(1, 2)))

        loaded = store.get(0)
        loaded.votes.record(True, 10)
        self.assertEqual(store.get(0).votes.yes_votes, 0)

        store.insert(0, loaded)
        self.assertEqual(store.get(0).votes.yes_votes, 10)

    def test_membership_defaults(self):
        store = MembershipStore()
        self.assertEqual(store.get_or_default("alice"), Member(0, 0))
        self.assertFalse(store.is_member("alice"))

        store.insert("alice", Member(100, 3))
        store.insert("bob", Member(50, 0))
        self.assertTrue(store.is_member("alice"))
        self.assertEqual(store.total_voting_power(), 150)

    def test_member_encoding(self):
        member = Member(voting_power=20_000, last_vote=7)
        raw = member.encode()
        self.assertEqual(len(raw), 20)
        self.assertEqual(Member.decode(raw), member)
        with self.assertRaises(MalformedRecord):
            Member.decode(raw[:10])

    def test_ballots(self):
        ballots = BallotStore()
        ballots.record(1, "alice", False)
        self.assertTrue(ballots.has_voted(1, "alice"))
        self.assertFalse(ballots.has_voted(2, "alice"))
        self.assertIs(ballots.get((1, "alice")), False)


class TestGovernanceConfig(unittest.TestCase):

    def test_presets(self):
        devnet = GovernanceConfig.devnet()
        self.assertEqual(devnet.voting_period, 10)
        self.assertEqual(devnet.minimum_balance, 10_000)
        self.assertFalse(devnet.per_proposal_ballots)
        self.assertGreater(GovernanceConfig.standard().voting_period, devnet.voting_period)

    def test_from_env(self):
        config = GovernanceConfig.from_env({
            "DAO_ASSET_ID": "7",
            "DAO_VOTING_PERIOD": "25",
            "DAO_BALLOT_SCOPE": "proposal",
        })
        self.assertEqual(config.asset_id, 7)
        self.assertEqual(config.voting_period, 25)
        self.assertEqual(config.minimum_balance, 10_000)
        self.assertTrue(config.per_proposal_ballots)

    def test_from_env_preset(self):
        config = GovernanceConfig.from_env({"DAO_PRESET": "standard", "DAO_ASSET_ID": "3"})
        self.assertEqual(config.voting_period, GovernanceConfig.standard().voting_period)
        self.assertEqual(config.asset_id, 3)
        with self.assertRaises(ValueError):
            GovernanceConfig.from_env({"DAO_PRESET": "mainnet"})

    def test_invalid_config(self):
        with self.assertRaises(ValueError):
            GovernanceConfig(asset_id=1, voting_period=-1, minimum_balance=0)
        with self.assertRaises(ValueError):
            GovernanceConfig(asset_id=1, voting_period=1, minimum_balance=0, ballot_scope="global")


if __name__ == '__main__':
    unittest.main()
