from flask_login import UserMixin
from werkzeug.security import generate_password_hash, check_password_hash
from datetime import datetime
from enum import Enum
import uuid
from rimappa import db


def new_id():
    return str(uuid.uuid4())


class UserRole(str, Enum):
    ADMIN = 'ADMIN'
    ORGANIZER = 'ORGANIZER'
    COMPETITOR = 'COMPETITOR'
    USER = 'USER'  # declared for completeness, grants nothing


class CompetitionStatus(str, Enum):
    OPEN = 'OPEN'
    IN_PROGRESS = 'IN_PROGRESS'
    FINISHED = 'FINISHED'


class CompetitionModality(str, Enum):
    ONE_VS_ONE = 'ONE_VS_ONE'
    TWO_VS_TWO = 'TWO_VS_TWO'
    THREE_VS_THREE = 'THREE_VS_THREE'
    EXHIBITION = 'EXHIBITION'


class ParticipationStatus(str, Enum):
    PENDING = 'PENDING'
    ACCEPTED = 'ACCEPTED'
    REJECTED = 'REJECTED'


class ActivityType(str, Enum):
    COMPETITION_CREATED = 'COMPETITION_CREATED'
    PARTICIPATION_REQUESTED = 'PARTICIPATION_REQUESTED'
    PARTICIPATION_UPDATED = 'PARTICIPATION_UPDATED'


def split_list(value):
    if value:
        return [item.strip() for item in value.split(',') if item.strip()]
    return []


def join_list(items):
    return ', '.join(items) if items else None


class User(UserMixin, db.Model):
    id = db.Column(db.String(36), primary_key=True, default=new_id)
    name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=False)
    password_hash = db.Column(db.String(256))
    role = db.Column(db.String(20), nullable=False, default=UserRole.COMPETITOR.value)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    competitions = db.relationship('Competition', backref='organizer', lazy='dynamic')

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        return bool(self.password_hash) and check_password_hash(self.password_hash, password)

    def summary(self):
        return {'id': self.id, 'name': self.name}

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'role': self.role,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f'<User {self.email}>'


class Competition(db.Model):
    id = db.Column(db.String(36), primary_key=True, default=new_id)
    slug = db.Column(db.String(250), unique=True, nullable=False, index=True)
    display_name = db.Column(db.String(200))
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=False)
    date = db.Column(db.DateTime, nullable=False)  # naive UTC
    location = db.Column(db.String(200), nullable=False)
    latitude = db.Column(db.Float)
    longitude = db.Column(db.Float)
    max_participants = db.Column(db.Integer, nullable=False)
    status = db.Column(db.String(20), nullable=False, default=CompetitionStatus.OPEN.value)
    modality = db.Column(db.String(20), nullable=False, default=CompetitionModality.ONE_VS_ONE.value)

    # Presentation
    image = db.Column(db.String(200))
    rating = db.Column(db.Float)
    price = db.Column(db.String(50))  # free text, e.g. "2.500"
    prize = db.Column(db.String(200))
    judges = db.Column(db.Text)  # comma-separated
    hosts = db.Column(db.Text)  # comma-separated
    dj = db.Column(db.String(100))
    producer = db.Column(db.String(100))

    organizer_id = db.Column(db.String(36), db.ForeignKey('user.id'), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    participants = db.relationship('Participation', backref='competition', lazy='select',
                                   order_by='Participation.created_at')

    def get_judges_list(self):
        return split_list(self.judges)

    def get_hosts_list(self):
        return split_list(self.hosts)

    def has_coordinates(self):
        return self.latitude is not None and self.longitude is not None

    def to_dict(self, include_relations=True):
        data = {
            'id': self.id,
            'slug': self.slug,
            'displayName': self.display_name,
            'title': self.title,
            'description': self.description,
            'date': self.date.isoformat() + 'Z',
            'location': self.location,
            'latitude': self.latitude,
            'longitude': self.longitude,
            'maxParticipants': self.max_participants,
            'status': self.status,
            'modality': self.modality,
            'image': self.image,
            'rating': self.rating,
            'price': self.price,
            'prize': self.prize,
            'judges': self.get_judges_list(),
            'hosts': self.get_hosts_list(),
            'dj': self.dj,
            'producer': self.producer,
            'organizerId': self.organizer_id,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
        }
        if include_relations:
            data['organizer'] = self.organizer.summary() if self.organizer else None
            data['participants'] = [
                {'id': p.id, 'userId': p.user_id, 'status': p.status} for p in self.participants
            ]
        return data

    def __repr__(self):
        return f'<Competition {self.slug}>'


class Participation(db.Model):
    id = db.Column(db.String(36), primary_key=True, default=new_id)
    user_id = db.Column(db.String(36), db.ForeignKey('user.id'), nullable=False)
    competition_id = db.Column(db.String(36), db.ForeignKey('competition.id'), nullable=False)
    status = db.Column(db.String(20), nullable=False, default=ParticipationStatus.PENDING.value)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    user = db.relationship('User', backref='participations')

    # A competitor can only ask once per competition
    __table_args__ = (db.UniqueConstraint('user_id', 'competition_id', name='_user_competition_uc'),)

    def to_dict(self):
        return {
            'id': self.id,
            'userId': self.user_id,
            'competitionId': self.competition_id,
            'status': self.status,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
            'user': {'id': self.user.id, 'name': self.user.name, 'email': self.user.email} if self.user else None,
            'competition': {
                'id': self.competition.id,
                'title': self.competition.title,
                'status': self.competition.status,
            } if self.competition else None,
        }

    def __repr__(self):
        return f'<Participation {self.user_id} -> {self.competition_id}>'


class Activity(db.Model):
    """Append-only feed shown on the dashboard"""
    id = db.Column(db.String(36), primary_key=True, default=new_id)
    type = db.Column(db.String(40), nullable=False)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text)
    user_id = db.Column(db.String(36), db.ForeignKey('user.id'), nullable=True)
    competition_id = db.Column(db.String(36), db.ForeignKey('competition.id'), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)

    user = db.relationship('User')
    competition = db.relationship('Competition')

    def __repr__(self):
        return f'<Activity {self.type}>'
