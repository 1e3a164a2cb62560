from datetime import datetime

from sqlalchemy import update
from sqlalchemy.orm import joinedload, selectinload

from rimappa.errors import ConflictError, NotFoundError
from rimappa.models import Competition, User, join_list
from rimappa.utils import slugify

# Fields copied from a validated record onto the row, on create and update alike
RECORD_FIELDS = (
    'title', 'description', 'date', 'location', 'max_participants', 'status',
    'modality', 'image', 'rating', 'price', 'prize', 'dj', 'producer',
    'latitude', 'longitude',
)


class CompetitionStore:
    """Competition persistence on top of an explicit SQLAlchemy session."""

    def __init__(self, session):
        self.session = session

    def get(self, competition_id):
        return self.session.query(Competition).filter(Competition.id == competition_id).first()

    def lock(self, competition_id):
        """
        Take the write lock on a competition for the rest of the transaction.

        Touching the row is the first write of the transaction: PostgreSQL
        locks the row, SQLite takes its database-wide write lock. Concurrent
        callers wait here until the holder commits or rolls back, so whatever
        they read afterwards includes its writes. Returns False when there is
        no such competition.
        """
        result = self.session.execute(
            update(Competition)
            .where(Competition.id == competition_id)
            .values(updated_at=datetime.utcnow())
            .execution_options(synchronize_session=False)
        )
        return result.rowcount > 0

    def get_by_slug(self, slug):
        return self.session.query(Competition).filter_by(slug=slug).first()

    def _apply(self, competition, record):
        for name in RECORD_FIELDS:
            setattr(competition, name, getattr(record, name))
        competition.display_name = record.display_name or record.title
        competition.judges = join_list(record.judges)
        competition.hosts = join_list(record.hosts)

    def create(self, record, organizer_id, slug=None):
        slug = slug or record.slug or slugify(record.title)
        if not slug:
            raise ConflictError('Cannot derive a slug from the title')
        if self.get_by_slug(slug):
            raise ConflictError(f'A competition with slug "{slug}" already exists')
        if not self.session.get(User, organizer_id):
            raise NotFoundError(f'Organizer {organizer_id} not found')

        competition = Competition(slug=slug, organizer_id=organizer_id)
        self._apply(competition, record)
        if getattr(record, 'created_at', None):
            competition.created_at = record.created_at
        self.session.add(competition)
        self.session.flush()
        return competition

    def upsert(self, record, slug):
        """Create or update by slug. Returns (competition, created)."""
        competition = self.get_by_slug(slug)
        if competition is None:
            return self.create(record, record.organizer_id, slug=slug), True

        # The organizer is fixed when the competition is first created
        self._apply(competition, record)
        self.session.flush()
        return competition, False

    def _filtered(self, status=None, organizer_id=None, upcoming=False):
        query = self.session.query(Competition)
        if status:
            query = query.filter(Competition.status == status)
        if organizer_id:
            query = query.filter(Competition.organizer_id == organizer_id)
        if upcoming:
            query = query.filter(Competition.date > datetime.utcnow())
        return query

    def find_many(self, status=None, organizer_id=None):
        return (
            self._filtered(status, organizer_id)
            .options(joinedload(Competition.organizer), selectinload(Competition.participants))
            .order_by(Competition.date.asc())
            .all()
        )

    def count(self, status=None, organizer_id=None, upcoming=False):
        return self._filtered(status, organizer_id, upcoming).count()
