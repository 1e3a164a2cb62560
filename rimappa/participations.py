import logging

from sqlalchemy.exc import IntegrityError

from rimappa.activity import record_activity
from rimappa.errors import ConflictError, NotFoundError
from rimappa.models import (
    ActivityType,
    CompetitionStatus,
    Participation,
    ParticipationStatus,
)
from rimappa.store import CompetitionStore

logger = logging.getLogger(__name__)


def request_participation(session, user, competition_id):
    """
    Create a PENDING participation for `user`.

    The competition is write-locked before anything is counted, so requests
    racing for the last slot run the check-and-insert one after another and
    each sees the participations committed before it. Commits on success,
    rolls back on any refusal.
    """
    try:
        store = CompetitionStore(session)
        competition = store.get(competition_id) if store.lock(competition_id) else None
        if competition is None:
            raise NotFoundError('Competition not found')

        if competition.status != CompetitionStatus.OPEN.value:
            raise ConflictError('The competition is not open for participation')

        existing = session.query(Participation).filter_by(
            user_id=user.id, competition_id=competition.id
        ).first()
        if existing:
            raise ConflictError('You have already requested to join this competition')

        taken = session.query(Participation).filter(
            Participation.competition_id == competition.id,
            Participation.status != ParticipationStatus.REJECTED.value,
        ).count()
        if taken >= competition.max_participants:
            raise ConflictError('There are no places left in this competition')

        participation = Participation(
            user_id=user.id,
            competition_id=competition.id,
            status=ParticipationStatus.PENDING.value,
        )
        session.add(participation)
        record_activity(
            session,
            ActivityType.PARTICIPATION_REQUESTED,
            title=f'{user.name} wants to join {competition.title}',
            description=f'{taken + 1} of {competition.max_participants} places requested',
            user_id=user.id,
            competition_id=competition.id,
        )
        session.commit()
    except IntegrityError:
        # lost a race against the same user's concurrent request
        session.rollback()
        raise ConflictError('You have already requested to join this competition')
    except Exception:
        session.rollback()
        raise

    logger.info("Participation %s requested by %s for %s", participation.id, user.id, competition_id)
    return participation


def list_participations(session, competition_id=None, user_id=None):
    query = session.query(Participation)
    if competition_id:
        query = query.filter(Participation.competition_id == competition_id)
    if user_id:
        query = query.filter(Participation.user_id == user_id)
    return query.order_by(Participation.created_at.desc()).all()
