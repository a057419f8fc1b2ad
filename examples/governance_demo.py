#!/usr/bin/env python3
"""
Example: ballot scope with overlapping proposals
"""

from dao_treasury.assets import FungiblesLedger
from dao_treasury.config import BALLOT_SCOPE_PROPOSAL, BALLOT_SCOPE_WINDOW
from dao_treasury.engine import Dao
from dao_treasury.errors import DaoError
from dao_treasury.host import HostEnv


def run(ballot_scope):
    ledger = FungiblesLedger()
    env = HostEnv("dao-contract", caller="carol")
    dao = Dao.new(env, ledger, 1, 10, 1_000, ballot_scope=ballot_scope)

    ledger.mint_into(1, "carol", 50_000)
    ledger.approve(1, "carol", "dao-contract", 50_000)
    dao.join(25_000)

    # Two proposals open at the same block, so their windows overlap
    grants = dao.create_proposal("grants-team", 5_000, "Community grants round")
    audit = dao.create_proposal("auditor", 8_000, "Security audit")
    env.advance_blocks(1)

    print(f"Ballot scope: {ballot_scope}")
    for proposal_id, label in [(grants, "grants"), (audit, "audit")]:
        try:
            dao.vote(proposal_id, True)
            print(f"   ✅ Carol voted on {label}")
        except DaoError as e:
            print(f"   ❌ Carol's vote on {label} refused: {e.kind}")
    print()


def main():
    print("=== Ballot Scope Demo ===")
    print()
    run(BALLOT_SCOPE_WINDOW)
    run(BALLOT_SCOPE_PROPOSAL)


if __name__ == "__main__":
    main()
