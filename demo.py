#!/usr/bin/env python3
"""
Complete demo of the DAO treasury governance system
"""

import logging

from dao_treasury.accounts import AccountKey, contract_account_for
from dao_treasury.assets import FungiblesLedger
from dao_treasury.config import GovernanceConfig
from dao_treasury.engine import Dao
from dao_treasury.errors import DaoError
from dao_treasury.host import HostEnv


def main():
    logging.basicConfig(level=logging.WARNING)

    print("=" * 60)
    print("🏛️  DAO TREASURY GOVERNANCE - COMPLETE DEMO")
    print("=" * 60)
    print()

    # Step 1: Setup
    print("🔧 STEP 1: Deploying the DAO")
    print("-" * 40)

    config = GovernanceConfig.devnet()
    ledger = FungiblesLedger()
    env = HostEnv(contract_account_for(config.asset_id))
    dao = Dao.from_config(env, ledger, config)

    print(f"✅ Contract: {dao.contract_account[:16]}...")
    print(f"✅ Asset: {config.asset_id} (min balance {config.minimum_balance:,})")
    print(f"✅ Voting period: {config.voting_period} blocks")
    print()

    # Step 2: Members
    print("👥 STEP 2: Members join by staking tokens")
    print("-" * 40)

    participants = {}
    for name, stake in [("Alice", 20_000), ("Bob", 10_000), ("Charlie", 13_333)]:
        key = AccountKey()
        ledger.mint_into(config.asset_id, key.account_id, 40_000)
        ledger.approve(config.asset_id, key.account_id, dao.contract_account, 40_000)

        env.set_caller(key.account_id)
        dao.join(stake)
        participants[name] = key
        print(f"✅ {name}: {key.account_id[:16]}... voting power {dao.get_member(key.account_id).voting_power:,}")

    print(f"✅ Treasury: {dao.treasury_balance():,}")
    print()

    # Step 3: Proposal
    print("📝 STEP 3: Alice proposes paying Bob")
    print("-" * 40)

    alice = participants["Alice"].account_id
    bob = participants["Bob"].account_id
    charlie = participants["Charlie"].account_id

    env.set_caller(alice)
    proposal_id = dao.create_proposal(bob, 30_000, "Funds for creation of a Dao contract")
    proposal = dao.get_proposal(proposal_id)
    print(f"✅ Proposal {proposal_id}: {proposal.status.value}, "
          f"votes blocks {proposal.votes.vote_start}-{proposal.votes.vote_end}")
    print()

    # Step 4: Voting
    print("🗳️  STEP 4: Voting")
    print("-" * 40)

    env.advance_blocks(1)
    for voter, approve in [(charlie, True), (bob, False), (charlie, False)]:
        env.set_caller(voter)
        try:
            dao.vote(proposal_id, approve)
            print(f"   {voter[:8]} votes {'YES' if approve else 'NO'} ✅")
        except DaoError as e:
            print(f"   {voter[:8]} vote refused: {e.kind} ❌")

    results = dao.proposal_results(proposal_id)
    print(f"   Tally: {results['yes_votes']:,} yes / {results['no_votes']:,} no")
    print()

    # Step 5: Execution
    print("⚡ STEP 5: Execution")
    print("-" * 40)

    try:
        dao.execute_proposal(proposal_id)
    except DaoError as e:
        print(f"   Too early: {e.kind}")

    env.advance_blocks(config.voting_period)
    bob_before = ledger.balance_of(config.asset_id, bob)
    dao.execute_proposal(proposal_id)

    print(f"✅ Status: {dao.get_proposal(proposal_id).status.value}")
    print(f"✅ Bob received: {ledger.balance_of(config.asset_id, bob) - bob_before:,}")
    print(f"✅ Treasury left: {dao.treasury_balance():,}")

    try:
        dao.execute_proposal(proposal_id)
    except DaoError as e:
        print(f"   Second execution refused: {e.kind}")
    print()

    print("📜 Events emitted:")
    for event in dao.events.events:
        print(f"   {type(event).__name__}")

    print()
    print("✅ Demo complete!")


if __name__ == "__main__":
    main()
