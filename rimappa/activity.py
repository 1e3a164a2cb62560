from datetime import datetime

from sqlalchemy import or_

from rimappa.models import (
    Activity,
    ActivityType,
    Competition,
    CompetitionStatus,
    Participation,
    ParticipationStatus,
    UserRole,
)
from rimappa.store import CompetitionStore


def record_activity(session, activity_type, title, description=None, user_id=None, competition_id=None):
    """Append an entry to the activity feed; the caller commits."""
    activity = Activity(
        type=ActivityType(activity_type).value,
        title=title,
        description=description,
        user_id=user_id,
        competition_id=competition_id,
    )
    session.add(activity)
    return activity


def dashboard_stats(session, user):
    """Counters for the dashboard cards, by role."""
    now = datetime.utcnow()
    if user.role == UserRole.ORGANIZER.value:
        store = CompetitionStore(session)
        return {
            'activeCompetitions': store.count(status=CompetitionStatus.OPEN.value, organizer_id=user.id),
            'participants': session.query(Participation).join(Competition).filter(
                Competition.organizer_id == user.id
            ).count(),
            'upcomingCompetitions': store.count(organizer_id=user.id, upcoming=True),
        }

    accepted = session.query(Participation).filter(
        Participation.user_id == user.id,
        Participation.status == ParticipationStatus.ACCEPTED.value,
    )
    return {
        'activeCompetitions': accepted.join(Competition).filter(
            Competition.status == CompetitionStatus.OPEN.value
        ).count(),
        'participants': session.query(Participation).filter(Participation.user_id == user.id).count(),
        'upcomingCompetitions': session.query(Competition).join(Participation).filter(
            Participation.user_id == user.id,
            Participation.status == ParticipationStatus.ACCEPTED.value,
            Competition.date > now,
        ).distinct().count(),
    }


def recent_activity(session, user, limit=5):
    query = session.query(Activity).outerjoin(Competition, Activity.competition_id == Competition.id)
    if user.role == UserRole.ORGANIZER.value:
        query = query.filter(or_(
            (Activity.type == ActivityType.COMPETITION_CREATED.value) & (Activity.user_id == user.id),
            Activity.type.in_([
                ActivityType.PARTICIPATION_REQUESTED.value,
                ActivityType.PARTICIPATION_UPDATED.value,
            ]) & (Competition.organizer_id == user.id),
        ))
    else:
        joined = session.query(Participation.competition_id).filter(Participation.user_id == user.id)
        query = query.filter(or_(
            Activity.user_id == user.id,
            Activity.competition_id.in_(joined),
        ))
    return query.order_by(Activity.created_at.desc()).limit(limit).all()
