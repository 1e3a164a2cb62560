from rimappa import db
from rimappa.models import User, UserRole


def register(client, role='COMPETITOR', email='wos@example.com', password='secret123', confirm=None):
    return client.post('/auth/register', data={
        'name': 'Wos',
        'email': email,
        'password': password,
        'confirm_password': confirm or password,
        'role': role,
    })


class TestAuthPages:

    def test_register_then_login(self, app, client):
        response = register(client, email='Wos@Example.com')
        assert response.status_code == 302

        with app.app_context():
            user = User.query.filter_by(email='wos@example.com').one()
            assert user.role == 'COMPETITOR'
            assert user.password_hash != 'secret123'

        response = client.post('/auth/login', data={'email': 'wos@example.com', 'password': 'secret123'})
        assert response.status_code == 302
        assert response.headers['Location'].endswith('/dashboard')

    def test_register_rejects_admin_role(self, app, client):
        response = register(client, role='ADMIN')
        assert response.status_code == 400
        with app.app_context():
            assert db.session.query(User).count() == 0

    def test_register_password_mismatch(self, client):
        assert register(client, confirm='other').status_code == 400

    def test_register_duplicate_email(self, client, make_user):
        make_user(email='wos@example.com')
        assert register(client).status_code == 400

    def test_bad_credentials(self, client, make_user):
        make_user(email='wos@example.com')
        response = client.post('/auth/login', data={'email': 'wos@example.com', 'password': 'wrong'})
        assert response.status_code == 401

    def test_login_follows_local_next_only(self, client, make_user):
        make_user(email='wos@example.com')
        data = {'email': 'wos@example.com', 'password': 'secret123'}
        response = client.post('/auth/login?next=//evil.example.com', data=data)
        assert response.headers['Location'].endswith('/dashboard')

    def test_logout(self, client, make_user, login):
        make_user(email='wos@example.com')
        login('wos@example.com')
        client.get('/auth/logout')
        assert client.get('/api/competitions').status_code == 401


class TestDashboardPages:

    def test_index_for_visitors(self, client):
        response = client.get('/')
        assert response.status_code == 200
        assert b'Rimappa' in response.data

    def test_organizer_pages(self, client, make_user, make_competition, login):
        organizer_id = make_user(email='org@example.com', role=UserRole.ORGANIZER.value)
        make_competition(organizer_id)
        login('org@example.com')

        assert client.get('/').status_code == 302
        assert client.get('/dashboard').status_code == 200
        assert client.get('/competitions').status_code == 200
        assert client.get('/dashboard/competitions/new').status_code == 200
        assert client.get('/dashboard/profile').status_code == 200

    def test_new_competition_is_for_organizers(self, client, make_user, login):
        make_user(email='wos@example.com')
        login('wos@example.com')
        assert client.get('/dashboard/competitions/new').status_code == 403
