import re
import unicodedata
from datetime import timezone


def slugify(value):
    """URL-safe key for a competition: 'Dinastía  Freestyle' -> 'dinastia-freestyle'."""
    if value is None:
        return None
    v = unicodedata.normalize('NFKD', value)
    v = ''.join(c for c in v if not unicodedata.combining(c))
    v = v.lower().strip()
    v = re.sub(r'\s+', '-', v)
    v = re.sub(r'[^a-z0-9-]', '', v)
    v = re.sub(r'-{2,}', '-', v).strip('-')
    return v or None


def to_utc_naive(value):
    """Columns hold naive UTC datetimes."""
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value
