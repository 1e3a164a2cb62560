"""
Typed views of competition, participation and profile payloads.

Raw input comes either from a CSV row (every value a string, absent columns
as empty strings) or from a JSON body. Both go through the same pydantic
models; `validate_record` and `validate_payload` turn the first pydantic
error into a RecordValidationError naming the field and the kind of failure.
"""
from datetime import date, datetime, time
from typing import List, Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from rimappa.errors import RecordValidationError
from rimappa.models import CompetitionModality, CompetitionStatus
from rimappa.utils import to_utc_naive

MISSING_ERRORS = {'missing'}
RANGE_ERRORS = {
    'greater_than', 'greater_than_equal', 'less_than', 'less_than_equal',
    'string_too_short', 'string_too_long', 'too_short', 'too_long',
    'enum', 'literal_error',
}


def _drop_blanks(data):
    if not isinstance(data, dict):
        return data
    cleaned = {}
    for key, value in data.items():
        # csv.DictReader files overflow cells under the None key
        if key is None:
            continue
        # short rows come back from csv.DictReader with None in the missing cells
        if value is None:
            continue
        if isinstance(value, str):
            value = value.strip()
            if not value:
                continue
        cleaned[key] = value
    return cleaned


class CompetitionFields(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra='ignore', use_enum_values=True, validate_default=True)

    title: str = Field(min_length=1, max_length=200)
    description: str
    date: datetime
    location: str = Field(min_length=1, max_length=200)
    max_participants: int = Field(alias='maxParticipants', ge=2, le=64)
    status: CompetitionStatus = CompetitionStatus.OPEN
    modality: CompetitionModality = CompetitionModality.ONE_VS_ONE
    slug: Optional[str] = Field(default=None, validation_alias=AliasChoices('slug', 'keyName'))
    display_name: Optional[str] = Field(default=None, alias='displayName')
    image: Optional[str] = None
    rating: Optional[float] = Field(default=None, ge=0, le=5)
    price: Optional[str] = None
    prize: Optional[str] = None
    judges: List[str] = Field(default_factory=list)
    hosts: List[str] = Field(default_factory=list)
    dj: Optional[str] = None
    producer: Optional[str] = None
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)

    @model_validator(mode='before')
    @classmethod
    def drop_blank_values(cls, data):
        return _drop_blanks(data)

    @field_validator('status', 'modality', mode='before')
    @classmethod
    def upper_case_enums(cls, value):
        if isinstance(value, str):
            return value.upper().replace('-', '_')
        return value

    @field_validator('judges', 'hosts', mode='before')
    @classmethod
    def split_names(cls, value):
        if isinstance(value, str):
            return [name.strip() for name in value.split(',') if name.strip()]
        return value

    @field_validator('price', mode='before')
    @classmethod
    def price_as_text(cls, value):
        # JSON clients send numbers, the CSV keeps "2.500"
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator('date')
    @classmethod
    def date_in_utc(cls, value):
        return to_utc_naive(value)

    def has_coordinates(self):
        return self.latitude is not None and self.longitude is not None


class CompetitionRecord(CompetitionFields):
    """One imported competition row."""
    organizer_id: str = Field(alias='organizerId', min_length=1)
    # legacy files carry the original creation time
    created_at: Optional[datetime] = Field(default=None, alias='createdAt')

    @field_validator('created_at', mode='before')
    @classmethod
    def created_on_date(cls, value):
        # v1 exports sometimes hold only the day
        if isinstance(value, str) and len(value.strip()) == 10:
            return datetime.combine(date.fromisoformat(value.strip()), time())
        return value

    @field_validator('created_at')
    @classmethod
    def created_in_utc(cls, value):
        return to_utc_naive(value) if value is not None else None


class CompetitionCreate(CompetitionFields):
    """Body of POST /api/competitions; the organizer comes from the session."""
    title: str = Field(min_length=3, max_length=200)
    description: str = Field(min_length=10)
    location: str = Field(min_length=3, max_length=200)


class ParticipationCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    competition_id: str = Field(alias='competitionId', min_length=1)

    @model_validator(mode='before')
    @classmethod
    def drop_blank_values(cls, data):
        return _drop_blanks(data)


class ProfileUpdate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    email: EmailStr

    @model_validator(mode='before')
    @classmethod
    def drop_blank_values(cls, data):
        return _drop_blanks(data)


def error_kind(error_type):
    if error_type in MISSING_ERRORS:
        return RecordValidationError.MISSING
    if error_type in RANGE_ERRORS:
        return RecordValidationError.OUT_OF_RANGE
    return RecordValidationError.WRONG_TYPE


def first_error(exc):
    """Reduce a pydantic ValidationError to its first failing field."""
    error = exc.errors()[0]
    field = '.'.join(str(part) for part in error['loc']) or 'body'
    return RecordValidationError(field, error_kind(error['type']), error['msg'])


def validate_payload(schema, raw):
    try:
        return schema.model_validate(raw)
    except ValidationError as exc:
        raise first_error(exc) from None


def validate_record(raw) -> CompetitionRecord:
    return validate_payload(CompetitionRecord, raw)
