#!/usr/bin/env python3
"""
Web interface for the DAO treasury devnet
"""

import json
import logging
import os
import threading
from typing import Dict

from flask import Flask, jsonify, request

from dao_treasury.accounts import AccountKey, contract_account_for, is_account_id
from dao_treasury.assets import FungiblesLedger
from dao_treasury.config import GovernanceConfig
from dao_treasury.engine import Dao
from dao_treasury.errors import DaoError, ProposalNotFound
from dao_treasury.events import EventSink
from dao_treasury.host import HostEnv

logger = logging.getLogger(__name__)

DEFAULT_MINT = 100_000

_MISSING = object()


class Devnet:
    """Single DAO plus its ledger and host, shared by all requests"""

    def __init__(self, config: GovernanceConfig):
        self.ledger = FungiblesLedger()
        self.env = HostEnv(contract_account_for(config.asset_id))
        self.dao = Dao.from_config(self.env, self.ledger, config)
        self.lock = threading.Lock()
        self.nonces: Dict[str, int] = {}  # account -> next accepted nonce

    def next_nonce(self, account: str) -> int:
        return self.nonces.get(account, 0)


def signing_payload(data: dict) -> bytes:
    """Canonical bytes a caller signs: the request body without its signature"""
    unsigned = {k: v for k, v in data.items() if k != 'signature'}
    return json.dumps(unsigned, sort_keys=True, separators=(',', ':')).encode()


def sign_request(key: AccountKey, data: dict, nonce: int) -> dict:
    """Return ``data`` with the caller, nonce and signature fields filled in"""
    body = dict(data, caller=key.account_id, nonce=nonce)
    body['signature'] = key.sign_message(signing_payload(body))
    return body


def int_field(data: dict, name: str, default=_MISSING) -> int:
    """JSON integer field; booleans and strings are refused"""
    value = data[name] if default is _MISSING else data.get(name, default)
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an integer")
    return value


def _error(err: DaoError, status: int = 400):
    return jsonify({'success': False, 'error': err.kind, 'message': str(err)}), status


def _bad_request(err: Exception):
    return jsonify({'success': False, 'error': 'BadRequest', 'message': str(err)}), 400


def create_app(config: GovernanceConfig = None) -> Flask:
    app = Flask(__name__)
    devnet = Devnet(config or GovernanceConfig.from_env())
    app.config['DEVNET'] = devnet

    def authenticated_call(fn):
        """
        Verify the signed body, then run ``fn(body)`` as the caller.

        Each body carries the caller's next nonce. A valid signature consumes
        the nonce even when the call itself fails, so a captured body cannot
        be submitted twice.
        """
        data = request.get_json(silent=True) or {}
        caller = data.get('caller', '')
        signature = data.get('signature', '')

        if not is_account_id(caller) or not AccountKey.verify_signature(signing_payload(data), signature, caller):
            logger.warning("rejected unsigned or badly signed request from %s", str(caller)[:8])
            return jsonify({'success': False, 'error': 'Unauthorized'}), 401

        with devnet.lock:
            expected = devnet.next_nonce(caller)
            nonce = data.get('nonce')
            if isinstance(nonce, bool) or nonce != expected:
                logger.warning("rejected stale nonce %r from %s (expected %d)", nonce, caller[:8], expected)
                return jsonify({'success': False, 'error': 'StaleNonce', 'expected': expected}), 409
            devnet.nonces[caller] = expected + 1

            try:
                devnet.env.set_caller(caller)
                result = fn(data)
            except ProposalNotFound as e:
                return _error(e, 404)
            except DaoError as e:
                logger.info("call by %s failed: %s", caller[:8], e.kind)
                return _error(e)
            except (KeyError, TypeError, ValueError) as e:
                return _bad_request(e)

            response = {'success': True, 'block': devnet.env.block_number()}
        if result is not None:
            response.update(result)
        return jsonify(response)

    @app.route('/')
    def index():
        """DAO summary"""
        with devnet.lock:
            return jsonify({
                'contract': devnet.dao.contract_account,
                'config': devnet.dao.config.to_dict(),
                'block': devnet.env.block_number(),
                'proposals_created': devnet.dao.proposal_count(),
                'total_voting_power': devnet.dao.total_voting_power(),
            })

    @app.route('/api/accounts', methods=['POST'])
    def create_account():
        """Generate a funded account that has approved the DAO"""
        data = request.get_json(silent=True) or {}
        try:
            amount = int_field(data, 'mint', DEFAULT_MINT)
        except TypeError as e:
            return _bad_request(e)
        asset_id = devnet.dao.config.asset_id
        private_hex, account_id = AccountKey.generate_key_pair()

        try:
            with devnet.lock:
                devnet.ledger.mint_into(asset_id, account_id, amount)
                devnet.ledger.approve(asset_id, account_id, devnet.dao.contract_account, amount)
        except DaoError as e:
            return _error(e)
        except ValueError as e:
            return _bad_request(e)

        logger.info("created devnet account %s with %d", account_id[:8], amount)
        return jsonify({
            'success': True,
            'account_id': account_id,
            'private_key': private_hex,
            'balance': amount,
        })

    @app.route('/api/accounts/<account>/nonce')
    def get_nonce(account):
        """Nonce the next signed request from ``account`` must carry"""
        with devnet.lock:
            return jsonify({'account': account, 'nonce': devnet.next_nonce(account)})

    @app.route('/api/join', methods=['POST'])
    def join():
        return authenticated_call(lambda data: devnet.dao.join(int_field(data, 'amount')))

    @app.route('/api/proposals', methods=['POST'])
    def create_proposal():
        def call(data):
            beneficiary = data['beneficiary']
            if not is_account_id(beneficiary):
                raise ValueError("beneficiary must be an account id")
            description = data.get('description', '')
            if not isinstance(description, str):
                raise TypeError("description must be a string")

            proposal_id = devnet.dao.create_proposal(
                beneficiary=beneficiary,
                amount=int_field(data, 'amount'),
                description=description,
            )
            return {'proposal_id': proposal_id}

        return authenticated_call(call)

    @app.route('/api/proposals/<int:proposal_id>/vote', methods=['POST'])
    def vote(proposal_id):
        def call(data):
            approve = data['approve']
            if not isinstance(approve, bool):
                raise TypeError("approve must be true or false")
            devnet.dao.vote(proposal_id, approve)

        return authenticated_call(call)

    @app.route('/api/proposals/<int:proposal_id>/execute', methods=['POST'])
    def execute(proposal_id):
        return authenticated_call(lambda data: devnet.dao.execute_proposal(proposal_id))

    @app.route('/api/proposals/<int:proposal_id>')
    def get_proposal(proposal_id):
        with devnet.lock:
            proposal = devnet.dao.get_proposal(proposal_id)
            if proposal is None:
                return jsonify({'error': 'ProposalNotFound'}), 404
            data = proposal.to_dict()
            data['results'] = devnet.dao.proposal_results(proposal_id)
        return jsonify(data)

    @app.route('/api/proposals/<int:proposal_id>/ballots/<account>')
    def get_ballot(proposal_id, account):
        """Per-proposal ballot of ``account``; null when none is recorded"""
        with devnet.lock:
            if devnet.dao.get_proposal(proposal_id) is None:
                return jsonify({'error': 'ProposalNotFound'}), 404
            approve = devnet.dao.ballot(proposal_id, account)
        return jsonify({'proposal_id': proposal_id, 'account': account, 'approve': approve})

    @app.route('/api/proposals')
    def get_proposals():
        """Proposals still open for voting"""
        with devnet.lock:
            proposals = [p.to_dict() for p in devnet.dao.active_proposals()]
        return jsonify({'proposals': proposals})

    @app.route('/api/members/<account>')
    def get_member(account):
        with devnet.lock:
            member = devnet.dao.get_member(account)
        return jsonify(member.to_dict())

    @app.route('/api/treasury')
    def get_treasury():
        with devnet.lock:
            asset_id = devnet.dao.config.asset_id
            return jsonify({
                'account': devnet.dao.contract_account,
                'asset_id': asset_id,
                'balance': devnet.dao.treasury_balance(),
                'total_supply': devnet.ledger.total_supply(asset_id),
                'total_voting_power': devnet.dao.total_voting_power(),
            })

    @app.route('/api/ledger/history')
    def get_ledger_history():
        """Every mint and transfer the devnet ledger applied"""
        with devnet.lock:
            return jsonify({'transfers': devnet.ledger.get_transfer_history()})

    @app.route('/api/events')
    def get_events():
        with devnet.lock:
            events = [EventSink.to_dict(e) for e in devnet.dao.events.events]
        return jsonify({'events': events})

    @app.route('/api/blocks', methods=['POST'])
    def advance_blocks():
        """Advance the devnet chain"""
        data = request.get_json(silent=True) or {}
        try:
            count = int_field(data, 'count', 1)
            with devnet.lock:
                height = devnet.env.advance_blocks(count)
        except (TypeError, ValueError) as e:
            return _bad_request(e)
        return jsonify({'success': True, 'block': height})

    return app


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    port = int(os.environ.get("PORT", 10000))
    create_app().run(
        host="0.0.0.0",
        port=port,
        debug=False
    )
