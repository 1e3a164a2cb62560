"""
Competition CSV import/export.

Two column layouts exist for the same data:

  v2 (canonical)  title;description;date;location;maxParticipants;status;
                  modality;slug;displayName;image;rating;price;prize;judges;
                  hosts;dj;producer;organizerId;latitude;longitude
  v1 (legacy)     displayName;keyName;eventDate;createdAt;modality;judges;
                  location;price;description;flyerPath

v1 files are mapped onto v2 on read; exports are always v2. A v1 `createdAt`
becomes the creation time of competitions the import creates, and a blank
`flyerPath` points at the flyer stored under the competition key. Rows are
processed one by one, in file order, and a bad row never stops the batch.
"""
import csv
import io
import logging
import dataclasses
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError

from rimappa.errors import RecordValidationError, RimappaError
from rimappa.schemas import validate_record
from rimappa.utils import slugify

logger = logging.getLogger(__name__)

DELIMITER = ';'
SCHEMA_V1 = 'v1'
SCHEMA_V2 = 'v2'

CANONICAL_COLUMNS = [
    'title', 'description', 'date', 'location', 'maxParticipants', 'status',
    'modality', 'slug', 'displayName', 'image', 'rating', 'price', 'prize',
    'judges', 'hosts', 'dj', 'producer', 'organizerId', 'latitude', 'longitude',
]
LEGACY_RENAMES = {
    'keyName': 'slug',
    'eventDate': 'date',
    'flyerPath': 'image',
}
# Legacy exports never carried a capacity
LEGACY_MAX_PARTICIPANTS = '32'
LEGACY_FLYER_PATH = '/images/competitions/flyers/{key}.jpg'


@dataclass
class RowResult:
    line: int
    outcome: str  # created, updated, skipped, failed
    slug: Optional[str] = None
    reason: Optional[str] = None
    field: Optional[str] = None
    warnings: List[str] = dataclasses.field(default_factory=list)

    def to_dict(self):
        data = {'line': self.line, 'outcome': self.outcome, 'slug': self.slug}
        if self.reason:
            data['reason'] = self.reason
        if self.field:
            data['field'] = self.field
        if self.warnings:
            data['warnings'] = list(self.warnings)
        return data


@dataclass
class ImportReport:
    schema: str = SCHEMA_V2
    rows: List[RowResult] = dataclasses.field(default_factory=list)

    def _count(self, outcome):
        return sum(1 for r in self.rows if r.outcome == outcome)

    @property
    def created(self):
        return self._count('created')

    @property
    def updated(self):
        return self._count('updated')

    @property
    def skipped(self):
        return self._count('skipped')

    @property
    def failed(self):
        return self._count('failed')

    def summary(self):
        return (f'{len(self.rows)} rows processed: {self.created} created, {self.updated} updated, '
                f'{self.skipped} skipped, {self.failed} failed')

    def to_dict(self):
        return {
            'message': self.summary(),
            'schema': self.schema,
            'created': self.created,
            'updated': self.updated,
            'skipped': self.skipped,
            'failed': self.failed,
            'rows': [r.to_dict() for r in self.rows],
        }


def detect_schema(headers):
    headers = set(h for h in headers if h)
    if 'title' in headers:
        return SCHEMA_V2
    if 'displayName' in headers and 'eventDate' in headers:
        return SCHEMA_V1
    raise ValueError(f"Unrecognised CSV header: {', '.join(sorted(headers)) or '(empty)'}")


def from_legacy(row, default_organizer_id=None):
    """Map a v1 row onto the v2 column names."""
    mapped = {}
    for key, value in row.items():
        if key is None:
            continue
        mapped[LEGACY_RENAMES.get(key, key)] = value
    mapped['title'] = row.get('displayName')
    if not (mapped.get('image') or '').strip():
        key = (mapped.get('slug') or '').strip() or slugify(mapped['title'] or '')
        if key:
            mapped['image'] = LEGACY_FLYER_PATH.format(key=key)
    if not (mapped.get('maxParticipants') or '').strip():
        mapped['maxParticipants'] = LEGACY_MAX_PARTICIPANTS
    if default_organizer_id and not (mapped.get('organizerId') or '').strip():
        mapped['organizerId'] = default_organizer_id
    return mapped


def read_rows(text, default_organizer_id=None):
    """Parse CSV text into (schema, [(line, row), ...]) with v2 keys."""
    if text.startswith('\ufeff'):
        text = text[1:]
    reader = csv.DictReader(io.StringIO(text), delimiter=DELIMITER)
    headers = [h.strip() for h in (reader.fieldnames or [])]
    reader.fieldnames = headers
    schema = detect_schema(headers)

    rows = []
    for row in reader:
        if not any((v or '').strip() for k, v in row.items() if k is not None):
            continue
        if schema == SCHEMA_V1:
            row = from_legacy(row, default_organizer_id)
        elif default_organizer_id and not (row.get('organizerId') or '').strip():
            row['organizerId'] = default_organizer_id
        # header is line 1
        rows.append((reader.line_num, row))
    return schema, rows


def import_rows(rows, store, geocoder, fallback=None):
    """Validate, enrich and upsert each (line, row) pair; returns an ImportReport."""
    report = ImportReport()
    for line, raw in rows:
        try:
            record = validate_record(raw)
        except RecordValidationError as e:
            logger.warning("Skipping line %s: %s (row=%r)", line, e.message, raw)
            report.rows.append(RowResult(line=line, outcome='skipped', reason=e.reason, field=e.field))
            continue

        slug = slugify(record.slug) if record.slug else slugify(record.title)
        if not slug:
            logger.warning("Skipping line %s: title %r gives an empty slug", line, record.title)
            report.rows.append(RowResult(line=line, outcome='skipped', reason='empty slug', field='title'))
            continue

        if not record.has_coordinates():
            coordinates = geocoder.lookup(record.location) if geocoder else None
            if coordinates is None and fallback is not None:
                logger.info("Using fallback coordinates for %r", record.location)
                coordinates = fallback
            if coordinates is not None:
                record = record.model_copy(update={
                    'latitude': coordinates.latitude,
                    'longitude': coordinates.longitude,
                })

        result = RowResult(line=line, outcome='created', slug=slug)
        existing = store.get_by_slug(slug)
        if existing is not None and existing.has_coordinates() and not record.has_coordinates():
            warning = 'stored coordinates cleared: row has none and geocoding found nothing'
            logger.warning("Line %s (%s): %s", line, slug, warning)
            result.warnings.append(warning)

        # One transaction per row; a failure only loses its own row
        try:
            _, created = store.upsert(record, slug)
            store.session.commit()
        except RimappaError as e:
            store.session.rollback()
            logger.error("Line %s (%s) rejected: %s", line, slug, e.message)
            report.rows.append(RowResult(line=line, outcome='failed', slug=slug, reason=e.message))
            continue
        except SQLAlchemyError as e:
            store.session.rollback()
            logger.exception("Line %s (%s) failed to store", line, slug)
            report.rows.append(RowResult(line=line, outcome='failed', slug=slug, reason=str(e)))
            continue

        result.outcome = 'created' if created else 'updated'
        logger.info("Line %s: %s %s", line, result.outcome, slug)
        report.rows.append(result)

    logger.info("Import finished: %s", report.summary())
    return report


def import_csv(text, store, geocoder, default_organizer_id=None, fallback=None):
    schema, rows = read_rows(text, default_organizer_id)
    report = import_rows(rows, store, geocoder, fallback=fallback)
    report.schema = schema
    return report


def export_csv(competitions):
    """Render competitions in the canonical v2 layout."""
    output = io.StringIO()
    writer = csv.DictWriter(output, fieldnames=CANONICAL_COLUMNS, delimiter=DELIMITER)
    writer.writeheader()
    for c in competitions:
        writer.writerow({
            'title': c.title,
            'description': c.description,
            'date': c.date.isoformat() + 'Z',
            'location': c.location,
            'maxParticipants': c.max_participants,
            'status': c.status,
            'modality': c.modality,
            'slug': c.slug,
            'displayName': c.display_name or '',
            'image': c.image or '',
            'rating': '' if c.rating is None else c.rating,
            'price': c.price or '',
            'prize': c.prize or '',
            'judges': ', '.join(c.get_judges_list()),
            'hosts': ', '.join(c.get_hosts_list()),
            'dj': c.dj or '',
            'producer': c.producer or '',
            'organizerId': c.organizer_id,
            'latitude': '' if c.latitude is None else c.latitude,
            'longitude': '' if c.longitude is None else c.longitude,
        })
    return output.getvalue()
