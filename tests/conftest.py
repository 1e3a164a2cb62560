from datetime import datetime, timedelta

import pytest

from rimappa import create_app, db
from rimappa.config import TestConfig
from rimappa.geocoding import Coordinates
from rimappa.models import Competition, User, UserRole

PALERMO = Coordinates(-34.5889, -58.4305)


class FakeGeocoder:
    """Answers from a dict; records every location it was asked about."""

    def __init__(self, known=None):
        self.known = dict(known or {})
        self.calls = []

    def lookup(self, location):
        self.calls.append(location)
        return self.known.get(location)


@pytest.fixture
def geocoder():
    return FakeGeocoder({'Palermo, CABA': PALERMO})


@pytest.fixture
def app(geocoder):
    app = create_app(TestConfig)
    app.extensions['rimappa.geocoder'] = geocoder
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def session(app):
    # Service-level tests only; don't mix with `client` (the request would reuse this context)
    with app.app_context():
        yield db.session


@pytest.fixture
def client(app):
    return app.test_client()


def create_user(name='Test User', email='user@example.com', role=UserRole.COMPETITOR.value,
                password='secret123', user_id=None):
    user = User(name=name, email=email, role=role)
    if user_id:
        user.id = user_id
    user.set_password(password)
    db.session.add(user)
    db.session.commit()
    return user


def create_competition(organizer, title='Batalla de Plaza', slug=None, max_participants=16,
                       status='OPEN', days_ahead=10, location='Palermo, CABA'):
    competition = Competition(
        slug=slug or title.lower().replace(' ', '-'),
        title=title,
        display_name=title,
        description='Freestyle battle in the park',
        date=datetime.utcnow() + timedelta(days=days_ahead),
        location=location,
        max_participants=max_participants,
        status=status,
        organizer_id=organizer.id,
    )
    db.session.add(competition)
    db.session.commit()
    return competition


@pytest.fixture
def make_user(app):
    """Create a user outside any request; returns its id."""
    def _make(**kwargs):
        with app.app_context():
            return create_user(**kwargs).id
    return _make


@pytest.fixture
def make_competition(app):
    def _make(organizer_id, **kwargs):
        with app.app_context():
            organizer = db.session.get(User, organizer_id)
            return create_competition(organizer, **kwargs).id
    return _make


@pytest.fixture
def login(client):
    def _login(email, password='secret123'):
        return client.post('/auth/login', data={'email': email, 'password': password})
    return _login
