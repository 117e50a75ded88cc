"""
Integration tests for API routes.
Drives every blueprint through the Flask test client; identities come from the
X-User-Id header as the identity proxy would send them.
"""
import json

import pytest

ORGANISER = 'organiser-1'
ADMIN = 'admin-1'


def body(response):
    return json.loads(response.data)


def as_user(user_id):
    return {'X-User-Id': user_id}


def create_tournament(client, user_id=ORGANISER, **overrides):
    payload = {
        'name': 'BGMI Pro Series',
        'mode': 'Squad',
        'type': 'Free',
        'prize_pool': '300',
        'max_teams': 16,
        'start_date': '2026-11-01T18:00:00Z'
    }
    payload.update(overrides)
    response = client.post('/tournaments', json=payload, headers=as_user(user_id))
    assert response.status_code == 201
    return body(response)


def create_team(client, captain_id, name, tag):
    response = client.post('/teams', json={'name': name, 'tag': tag}, headers=as_user(captain_id))
    assert response.status_code == 201
    return body(response)


def create_match(client, tournament_id, user_id=ORGANISER):
    response = client.post('/matches', json={
        'tournament_id': tournament_id,
        'round': 'qualifier',
        'start_time': '2026-11-01T18:30:00Z'
    }, headers=as_user(user_id))
    assert response.status_code == 201
    return body(response)


class TestHealthEndpoint:
    """Tests for /health endpoint."""

    def test_health_check(self, client):
        response = client.get('/health')
        assert response.status_code == 200

        data = body(response)
        assert data['status'] == 'healthy'
        assert data['database'] == 'connected'


class TestAuth:
    """Tests for identity handling."""

    def test_current_user_upserted(self, client, auth_headers):
        response = client.get('/auth/user', headers=auth_headers('u-1', email='u1@example.com', name='Mortal'))
        assert response.status_code == 200

        data = body(response)
        assert data['id'] == 'u-1'
        assert data['email'] == 'u1@example.com'
        assert data['username'] == 'Mortal'
        assert data['is_admin'] is False

    def test_shared_display_name(self, client, auth_headers):
        """Two identities with the same display name both get in."""
        first = client.get('/auth/user', headers=auth_headers('sub-1', name='alex'))
        second = client.get('/auth/user', headers=auth_headers('sub-2', name='alex'))

        assert first.status_code == 200
        assert second.status_code == 200
        assert body(second)['id'] == 'sub-2'
        assert body(second)['username'] == 'alex'

    def test_email_held_by_another_user(self, client, auth_headers):
        """An email already on file for someone else is not copied."""
        client.get('/auth/user', headers=auth_headers('sub-1', email='alex@example.com'))

        response = client.get('/auth/user', headers=auth_headers('sub-2', email='alex@example.com'))
        assert response.status_code == 200
        assert body(response)['email'] is None

        client.get('/auth/user', headers=auth_headers('sub-3'))
        response = client.get('/auth/user', headers=auth_headers('sub-3', email='alex@example.com'))
        assert response.status_code == 200
        assert body(response)['email'] is None

    def test_admin_from_config(self, client):
        data = body(client.get('/auth/user', headers=as_user(ADMIN)))
        assert data['is_admin'] is True

    def test_anonymous(self, client):
        response = client.get('/auth/user')
        assert response.status_code == 401
        assert body(response) == {'error': 'Authentication required'}

    @pytest.mark.parametrize('method,path', [
        ('post', '/tournaments'),
        ('post', '/teams'),
        ('post', '/matches'),
        ('patch', '/match-results/any'),
        ('post', '/matches/any/chat'),
        ('post', '/replays'),
    ])
    def test_mutations_require_identity(self, client, method, path):
        response = getattr(client, method)(path, json={})
        assert response.status_code == 401


class TestErrors:
    """Tests for the JSON error contract."""

    def test_not_found(self, client):
        response = client.get('/tournaments/missing')
        assert response.status_code == 404
        assert body(response) == {'error': 'Tournament not found'}

    def test_unknown_route(self, client):
        response = client.get('/nowhere')
        assert response.status_code == 404
        assert 'error' in body(response)

    def test_validation_error(self, client):
        response = client.post('/tournaments', json={'name': 'Incomplete'}, headers=as_user(ORGANISER))
        assert response.status_code == 400
        assert 'Missing required field' in body(response)['error']

    def test_body_must_be_object(self, client):
        response = client.post('/teams', json=['SOUL'], headers=as_user('player-1'))
        assert response.status_code == 400


class TestTournamentRoutes:
    """Tests for tournament CRUD routes."""

    def test_create_and_get(self, client):
        created = create_tournament(client)
        assert created['status'] == 'open'
        assert created['current_teams'] == 0
        assert created['prize_pool'] == '300.00'

        response = client.get(f"/tournaments/{created['id']}")
        assert response.status_code == 200
        assert body(response)['name'] == 'BGMI Pro Series'

    def test_list_with_status(self, client):
        first = create_tournament(client, name='Week 1')
        create_tournament(client, name='Week 2')
        client.patch(f"/tournaments/{first['id']}", json={'status': 'live'}, headers=as_user(ORGANISER))

        assert len(body(client.get('/tournaments'))) == 2
        live = body(client.get('/tournaments?status=live'))
        assert [t['name'] for t in live] == ['Week 1']
        assert client.get('/tournaments?status=paused').status_code == 400

    def test_update_forbidden_for_others(self, client):
        created = create_tournament(client)
        response = client.patch(
            f"/tournaments/{created['id']}", json={'name': 'Mine now'}, headers=as_user('player-1')
        )
        assert response.status_code == 403

    def test_regression_conflict(self, client):
        created = create_tournament(client)
        url = f"/tournaments/{created['id']}"
        assert client.patch(url, json={'status': 'live'}, headers=as_user(ORGANISER)).status_code == 200

        response = client.patch(url, json={'status': 'open'}, headers=as_user(ORGANISER))
        assert response.status_code == 409

    def test_delete(self, client):
        created = create_tournament(client)
        response = client.delete(f"/tournaments/{created['id']}", headers=as_user(ORGANISER))
        assert response.status_code == 200
        assert client.get(f"/tournaments/{created['id']}").status_code == 404


class TestRegistrationRoutes:
    """Tests for registering teams into tournaments."""

    def test_capacity_scenario(self, client):
        tournament = create_tournament(client, max_teams=2)
        team_a = create_team(client, 'player-1', 'Soul', 'SOUL')
        team_b = create_team(client, 'player-2', 'GodLike', 'GDL')
        team_c = create_team(client, 'player-3', 'Blind', 'BLD')
        url = f"/tournaments/{tournament['id']}/register"

        response = client.post(url, json={'teamId': team_a['id']}, headers=as_user('player-1'))
        assert response.status_code == 201
        assert body(response)['team']['tag'] == 'SOUL'

        response = client.post(url, json={'teamId': team_a['id']}, headers=as_user('player-1'))
        assert response.status_code == 409
        assert body(response) == {'error': 'Team already registered'}

        response = client.post(url, json={'team_id': team_b['id']}, headers=as_user('player-2'))
        assert response.status_code == 201

        response = client.post(url, json={'teamId': team_c['id']}, headers=as_user('player-3'))
        assert response.status_code == 409
        assert body(response) == {'error': 'Tournament is full'}

        assert body(client.get(f"/tournaments/{tournament['id']}"))['current_teams'] == 2
        registrations = body(client.get(f"/tournaments/{tournament['id']}/registrations"))
        assert {r['team_id'] for r in registrations} == {team_a['id'], team_b['id']}

    def test_team_id_required(self, client):
        tournament = create_tournament(client)
        response = client.post(
            f"/tournaments/{tournament['id']}/register", json={}, headers=as_user('player-1')
        )
        assert response.status_code == 400

    def test_unregister(self, client):
        tournament = create_tournament(client)
        team = create_team(client, 'player-1', 'Soul', 'SOUL')
        client.post(f"/tournaments/{tournament['id']}/register",
                    json={'teamId': team['id']}, headers=as_user('player-1'))

        response = client.delete(
            f"/tournaments/{tournament['id']}/register/{team['id']}", headers=as_user('player-1')
        )
        assert response.status_code == 200
        assert body(client.get(f"/tournaments/{tournament['id']}"))['current_teams'] == 0

        response = client.delete(
            f"/tournaments/{tournament['id']}/register/{team['id']}", headers=as_user('player-1')
        )
        assert response.status_code == 404

    def test_closed_tournament(self, client):
        tournament = create_tournament(client)
        team = create_team(client, 'player-1', 'Soul', 'SOUL')
        client.patch(f"/tournaments/{tournament['id']}", json={'status': 'live'}, headers=as_user(ORGANISER))

        response = client.post(f"/tournaments/{tournament['id']}/register",
                               json={'teamId': team['id']}, headers=as_user('player-1'))
        assert response.status_code == 409


class TestTeamRoutes:
    """Tests for teams, members and invitations."""

    def test_invitation_flow(self, client):
        team = create_team(client, 'player-1', 'Soul', 'SOUL')
        # The recruit must have been seen by the API before being invited
        client.get('/auth/user', headers=as_user('recruit'))

        response = client.post('/team-invitations', json={'teamId': team['id'], 'userId': 'recruit'},
                               headers=as_user('player-1'))
        assert response.status_code == 201
        invitation = body(response)

        pending = body(client.get('/user/invitations', headers=as_user('recruit')))
        assert [i['id'] for i in pending] == [invitation['id']]
        assert pending[0]['team']['name'] == 'Soul'

        url = f"/team-invitations/{invitation['id']}"
        response = client.patch(url, json={'status': 'accepted'}, headers=as_user('recruit'))
        assert response.status_code == 200
        assert body(response)['status'] == 'accepted'

        response = client.patch(url, json={'status': 'accepted'}, headers=as_user('recruit'))
        assert response.status_code == 409

        members = body(client.get(f"/teams/{team['id']}/members"))
        assert sorted(m['user_id'] for m in members) == ['player-1', 'recruit']
        assert body(client.get('/user/team', headers=as_user('recruit')))['id'] == team['id']
        assert body(client.get('/user/invitations', headers=as_user('recruit'))) == []

    def test_only_invitee_may_answer(self, client):
        team = create_team(client, 'player-1', 'Soul', 'SOUL')
        client.get('/auth/user', headers=as_user('recruit'))
        invitation = body(client.post('/team-invitations', json={'team_id': team['id'], 'user_id': 'recruit'},
                                      headers=as_user('player-1')))

        response = client.patch(f"/team-invitations/{invitation['id']}",
                                json={'status': 'accepted'}, headers=as_user('player-1'))
        assert response.status_code == 403

    def test_user_without_team(self, client):
        response = client.get('/user/team', headers=as_user('loner'))
        assert response.status_code == 200
        assert body(response) is None

    def test_delete_team_frees_slot(self, client):
        tournament = create_tournament(client)
        team = create_team(client, 'player-1', 'Soul', 'SOUL')
        client.post(f"/tournaments/{tournament['id']}/register",
                    json={'teamId': team['id']}, headers=as_user('player-1'))

        assert client.delete(f"/teams/{team['id']}", headers=as_user('player-2')).status_code == 403
        assert client.delete(f"/teams/{team['id']}", headers=as_user('player-1')).status_code == 200

        assert client.get(f"/teams/{team['id']}").status_code == 404
        assert body(client.get(f"/tournaments/{tournament['id']}"))['current_teams'] == 0


class TestMatchRoutes:
    """Tests for the match lifecycle over HTTP, through to rankings."""

    @pytest.fixture
    def setup(self, client):
        tournament = create_tournament(client)
        teams = [
            create_team(client, 'player-1', 'Soul', 'SOUL'),
            create_team(client, 'player-2', 'GodLike', 'GDL'),
            create_team(client, 'player-3', 'Blind', 'BLD'),
        ]
        match = create_match(client, tournament['id'])
        results = {}
        for team in teams:
            response = client.post(f"/matches/{match['id']}/results",
                                   json={'teamId': team['id']}, headers=as_user(ORGANISER))
            assert response.status_code == 201
            results[team['tag']] = body(response)
        return tournament, match, results

    def test_full_match(self, client, setup):
        tournament, match, results = setup
        match_url = f"/matches/{match['id']}"
        assert match['status'] == 'scheduled'
        assert match['name'].startswith('qualifier-')

        live = body(client.patch(match_url, json={'status': 'live'}, headers=as_user(ORGANISER)))
        assert live['status'] == 'live'
        assert live['room_id']

        def patch_result(tag, payload):
            return client.patch(f"/match-results/{results[tag]['id']}", json=payload, headers=as_user(ORGANISER))

        assert patch_result('SOUL', {'kills': 5}).status_code == 200
        assert patch_result('GDL', {'kills': 3}).status_code == 200

        response = patch_result('BLD', {'status': 'eliminated'})
        assert response.status_code == 200
        assert body(response)['position'] == 3

        # Eliminating twice conflicts and keeps the first elimination
        response = patch_result('BLD', {'status': 'eliminated'})
        assert response.status_code == 409

        assert patch_result('GDL', {'status': 'eliminated', 'position': 3}).status_code == 409
        assert patch_result('GDL', {'status': 'eliminated', 'position': 2}).status_code == 200

        board = body(client.get(f"{match_url}/leaderboard"))
        assert [entry['team']['tag'] for entry in board] == ['SOUL', 'GDL', 'BLD']

        response = client.patch(match_url, json={'status': 'completed'}, headers=as_user(ORGANISER))
        assert response.status_code == 200
        assert body(response)['end_time'] is not None

        final = body(client.get(f"{match_url}/results"))
        assert [(r['team']['tag'], r['position'], r['points']) for r in final] == [
            ('SOUL', 1, 15), ('GDL', 2, 9), ('BLD', 3, 5)
        ]

        players = body(client.get('/rankings/players'))
        assert players[0]['id'] == 'player-1'
        assert players[0]['total_points'] == 15
        assert players[0]['total_kills'] == 5

        teams = body(client.get('/rankings/teams'))
        assert teams[0]['tag'] == 'SOUL'
        assert teams[0]['total_wins'] == 1

        standings = body(client.get(f"/tournaments/{tournament['id']}/standings"))
        assert standings[0]['tag'] == 'SOUL'
        assert standings[0]['points'] == 15

        # Completed matches are final
        assert client.patch(match_url, json={'status': 'live'}, headers=as_user(ORGANISER)).status_code == 409

    def test_invalid_status(self, client, setup):
        _, match, _ = setup
        response = client.patch(f"/matches/{match['id']}", json={'status': 'paused'}, headers=as_user(ORGANISER))
        assert response.status_code == 400

    def test_complete_with_teams_alive(self, client, setup):
        _, match, _ = setup
        url = f"/matches/{match['id']}"
        client.patch(url, json={'status': 'live'}, headers=as_user(ORGANISER))

        response = client.patch(url, json={'status': 'completed'}, headers=as_user(ORGANISER))
        assert response.status_code == 409
        assert body(client.get(url))['status'] == 'live'

    def test_duplicate_result(self, client, setup):
        _, match, results = setup
        response = client.post(f"/matches/{match['id']}/results",
                               json={'teamId': results['SOUL']['team_id']}, headers=as_user(ORGANISER))
        assert response.status_code == 409

    def test_tournament_matches_and_delete(self, client, setup):
        tournament, match, _ = setup
        matches = body(client.get(f"/tournaments/{tournament['id']}/matches"))
        assert [m['id'] for m in matches] == [match['id']]
        assert len(body(client.get('/matches'))) == 1

        assert client.delete(f"/matches/{match['id']}", headers=as_user(ORGANISER)).status_code == 200
        assert client.get(f"/matches/{match['id']}").status_code == 404


class TestChatRoutes:
    """Tests for match chat."""

    def test_post_and_list(self, client):
        tournament = create_tournament(client)
        match = create_match(client, tournament['id'])
        url = f"/matches/{match['id']}/chat"

        response = client.post(url, json={'message': 'gg'}, headers=as_user('player-1'))
        assert response.status_code == 201
        assert body(response)['type'] == 'user'

        response = client.post(url, json={'message': 'Zone closing', 'type': 'admin'}, headers=as_user(ADMIN))
        assert response.status_code == 201

        messages = body(client.get(url))
        assert [m['message'] for m in messages] == ['gg', 'Zone closing']
        assert messages[0]['user']['id'] == 'player-1'

    @pytest.mark.parametrize('message_type', ['admin', 'system'])
    def test_privileged_types_refused(self, client, message_type):
        tournament = create_tournament(client)
        match = create_match(client, tournament['id'])

        response = client.post(f"/matches/{match['id']}/chat",
                               json={'message': 'hi', 'type': message_type}, headers=as_user('player-1'))
        assert response.status_code == 403

    def test_empty_message(self, client):
        tournament = create_tournament(client)
        match = create_match(client, tournament['id'])
        response = client.post(f"/matches/{match['id']}/chat", json={'message': '  '}, headers=as_user('player-1'))
        assert response.status_code == 400


class TestReplayRoutes:
    """Tests for match replays."""

    def test_create_list_get(self, client):
        tournament = create_tournament(client)
        match = create_match(client, tournament['id'])

        response = client.post('/replays', json={
            'match_id': match['id'],
            'title': 'Final circle',
            'video_url': 'https://videos.example.com/final.mp4'
        }, headers=as_user(ORGANISER))
        assert response.status_code == 201
        replay = body(response)

        assert [r['id'] for r in body(client.get('/replays'))] == [replay['id']]
        assert body(client.get(f"/replays/{replay['id']}"))['title'] == 'Final circle'
        assert client.get('/replays/missing').status_code == 404


class TestStatsRoute:
    """Tests for platform stats."""

    def test_stats(self, client):
        create_tournament(client, prize_pool='100')
        second = create_tournament(client, prize_pool='200')
        third = create_tournament(client, prize_pool='300')
        create_team(client, 'player-1', 'Soul', 'SOUL')

        url = f"/tournaments/{third['id']}"
        client.patch(url, json={'status': 'live'}, headers=as_user(ORGANISER))
        client.patch(url, json={'status': 'completed'}, headers=as_user(ORGANISER))
        client.patch(f"/tournaments/{second['id']}", json={'status': 'live'}, headers=as_user(ORGANISER))

        assert body(client.get('/stats')) == {
            'active_tournaments': 2,
            'total_prize_pool': '300.00',
            'registered_teams': 1,
            'live_matches': 0,
        }
