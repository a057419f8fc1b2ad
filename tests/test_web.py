import unittest

from dao_treasury.accounts import AccountKey
from dao_treasury.config import GovernanceConfig
from web_interface.app import create_app, sign_request


class TestWebInterface(unittest.TestCase):

    def setUp(self):
        """Set up a devnet DAO and two funded accounts"""
        self.app = create_app(GovernanceConfig(asset_id=5, voting_period=3, minimum_balance=1_000))
        self.client = self.app.test_client()
        self.alice = self.new_account(50_000)
        self.bob = self.new_account(50_000)

    def new_account(self, mint):
        data = self.client.post('/api/accounts', json={'mint': mint}).get_json()
        self.assertTrue(data['success'])
        return AccountKey(bytes.fromhex(data['private_key']))

    def next_nonce(self, key):
        return self.client.get(f'/api/accounts/{key.account_id}/nonce').get_json()['nonce']

    def signed_post(self, key, path, body):
        return self.client.post(path, json=sign_request(key, body, self.next_nonce(key)))

    def test_account_ids_are_public_keys(self):
        self.assertEqual(len(self.alice.account_id), 66)
        self.assertIn(self.alice.account_id[:2], ('02', '03'))

    def test_full_proposal_lifecycle(self):
        """Join, propose, vote, wait out the window and execute"""
        self.assertEqual(self.signed_post(self.alice, '/api/join', {'amount': 20_000}).status_code, 200)
        self.assertEqual(self.signed_post(self.bob, '/api/join', {'amount': 10_000}).status_code, 200)

        member = self.client.get(f'/api/members/{self.alice.account_id}').get_json()
        self.assertEqual(member['voting_power'], 20_000)

        response = self.signed_post(self.alice, '/api/proposals', {
            'beneficiary': self.bob.account_id,
            'amount': 5_000,
            'description': 'Pay Bob for the audit',
        })
        proposal_id = response.get_json()['proposal_id']
        self.assertEqual(proposal_id, 0)

        self.client.post('/api/blocks', json={'count': 1})
        vote = self.signed_post(self.alice, f'/api/proposals/{proposal_id}/vote', {'approve': True})
        self.assertTrue(vote.get_json()['success'])

        active = self.client.get('/api/proposals').get_json()['proposals']
        self.assertEqual([p['proposal_id'] for p in active], [0])

        early = self.signed_post(self.bob, f'/api/proposals/{proposal_id}/execute', {})
        self.assertEqual(early.status_code, 400)
        self.assertEqual(early.get_json()['error'], 'VotingPeriodNotEnded')

        self.client.post('/api/blocks', json={'count': 5})
        executed = self.signed_post(self.bob, f'/api/proposals/{proposal_id}/execute', {})
        self.assertTrue(executed.get_json()['success'])

        proposal = self.client.get(f'/api/proposals/{proposal_id}').get_json()
        self.assertEqual(proposal['status'], 'executed')
        self.assertEqual(proposal['results']['yes_votes'], 20_000)
        self.assertEqual(self.client.get('/api/treasury').get_json()['balance'], 25_000)

        events = self.client.get('/api/events').get_json()['events']
        self.assertEqual([e['event'] for e in events[-2:]], ['Transfer', 'Approval'])

    def test_bad_signature_rejected(self):
        body = sign_request(self.alice, {'amount': 20_000}, 0)
        body['amount'] = 40_000
        response = self.client.post('/api/join', json=body)
        self.assertEqual(response.status_code, 401)

    def test_signature_from_other_key_rejected(self):
        body = sign_request(self.alice, {'amount': 20_000}, 0)
        body['caller'] = self.bob.account_id
        self.assertEqual(self.client.post('/api/join', json=body).status_code, 401)

    def test_dao_errors_are_reported(self):
        self.signed_post(self.alice, '/api/proposals', {
            'beneficiary': self.bob.account_id, 'amount': 1, 'description': 'x',
        })
        response = self.signed_post(self.bob, '/api/proposals/0/vote', {'approve': True})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()['error'], 'MemberNotFound')

    def test_missing_proposal(self):
        self.assertEqual(self.client.get('/api/proposals/9').status_code, 404)
        response = self.signed_post(self.alice, '/api/proposals/9/vote', {'approve': True})
        self.assertEqual(response.status_code, 404)


    def test_replayed_request_rejected(self):
        """A captured body cannot be submitted a second time"""
        body = sign_request(self.alice, {'amount': 20_000}, self.next_nonce(self.alice))
        self.assertEqual(self.client.post('/api/join', json=body).status_code, 200)

        replay = self.client.post('/api/join', json=body)
        self.assertEqual(replay.status_code, 409)
        self.assertEqual(replay.get_json()['error'], 'StaleNonce')

        member = self.client.get(f'/api/members/{self.alice.account_id}').get_json()
        self.assertEqual(member['voting_power'], 20_000)
        self.assertEqual(self.next_nonce(self.alice), 1)

    def test_failed_call_consumes_nonce(self):
        response = self.signed_post(self.bob, '/api/proposals/0/vote', {'approve': True})
        self.assertEqual(response.status_code, 404)
        self.assertEqual(self.next_nonce(self.bob), 1)

    def test_approve_must_be_boolean(self):
        """Truthy strings do not count as a yes vote"""
        self.signed_post(self.alice, '/api/join', {'amount': 20_000})
        self.signed_post(self.alice, '/api/proposals', {
            'beneficiary': self.bob.account_id, 'amount': 1, 'description': 'x',
        })
        self.client.post('/api/blocks', json={'count': 1})

        response = self.signed_post(self.alice, '/api/proposals/0/vote', {'approve': 'false'})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()['error'], 'BadRequest')

        results = self.client.get('/api/proposals/0').get_json()['results']
        self.assertEqual((results['yes_votes'], results['no_votes']), (0, 0))

        self.signed_post(self.alice, '/api/proposals/0/vote', {'approve': False})
        results = self.client.get('/api/proposals/0').get_json()['results']
        self.assertEqual((results['yes_votes'], results['no_votes']), (0, 20_000))

    def test_beneficiary_must_be_account_id(self):
        for beneficiary in (123, 'bob', 'ab' * 200):
            response = self.signed_post(self.alice, '/api/proposals', {
                'beneficiary': beneficiary, 'amount': 1, 'description': 'x',
            })
            self.assertEqual(response.status_code, 400)
            self.assertEqual(response.get_json()['error'], 'BadRequest')
        self.assertEqual(self.client.get('/').get_json()['proposals_created'], 0)

    def test_bad_numbers_are_rejected(self):
        self.assertEqual(self.client.post('/api/accounts', json={'mint': 'lots'}).status_code, 400)
        self.assertEqual(self.client.post('/api/accounts', json={'mint': -5}).status_code, 400)
        self.assertEqual(self.client.post('/api/blocks', json={'count': 'two'}).status_code, 400)
        self.assertEqual(self.client.post('/api/blocks', json={'count': -1}).status_code, 400)
        self.assertEqual(self.signed_post(self.alice, '/api/join', {'amount': '20000'}).status_code, 400)

    def test_treasury_and_ledger_views(self):
        self.signed_post(self.alice, '/api/join', {'amount': 20_000})

        treasury = self.client.get('/api/treasury').get_json()
        self.assertEqual(treasury['balance'], 20_000)
        self.assertEqual(treasury['total_supply'], 100_000)
        self.assertEqual(treasury['total_voting_power'], 20_000)

        transfers = self.client.get('/api/ledger/history').get_json()['transfers']
        self.assertEqual(transfers[-1]['from'], self.alice.account_id)
        self.assertEqual(transfers[-1]['amount'], 20_000)

    def test_ballot_lookup(self):
        app = create_app(GovernanceConfig(asset_id=6, voting_period=3, minimum_balance=1_000, ballot_scope='proposal'))
        self.client = app.test_client()
        alice = self.new_account(50_000)
        self.signed_post(alice, '/api/join', {'amount': 20_000})
        self.signed_post(alice, '/api/proposals', {
            'beneficiary': alice.account_id, 'amount': 1, 'description': 'x',
        })
        self.signed_post(alice, '/api/proposals/0/vote', {'approve': False})

        ballot = self.client.get(f'/api/proposals/0/ballots/{alice.account_id}').get_json()
        self.assertIs(ballot['approve'], False)
        self.assertEqual(self.client.get(f'/api/proposals/4/ballots/{alice.account_id}').status_code, 404)


if __name__ == '__main__':
    unittest.main()
