"""
MapTiler geocoding client.

A lookup never raises for ordinary failures: network errors, timeouts,
error statuses, unusable payloads and empty result sets all come back as
None and are logged. Callers decide what a missing coordinate means.
"""
import logging
from collections import namedtuple
from urllib.parse import quote

import requests

logger = logging.getLogger(__name__)

Coordinates = namedtuple('Coordinates', ['latitude', 'longitude'])

PREFERRED_PLACE_TYPES = ('address', 'poi')
MIN_RELEVANCE = 0.8


def select_feature(features):
    """First confident address/POI match, otherwise the top-ranked feature."""
    for feature in features:
        place_types = feature.get('place_type') or []
        if (feature.get('relevance') or 0) > MIN_RELEVANCE and any(t in place_types for t in PREFERRED_PLACE_TYPES):
            return feature
    return features[0] if features else None


class Geocoder:
    """Resolves free-text locations to coordinates, one request per call."""

    def __init__(self, api_key, base_url='https://api.maptiler.com/geocoding', timeout=5.0,
                 language='es', country='ar', session=None):
        self.api_key = api_key
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.language = language
        self.country = country
        self.session = session or requests.Session()

    @classmethod
    def from_config(cls, config):
        return cls(
            api_key=config.get('MAPTILER_API_KEY'),
            base_url=config.get('GEOCODER_URL', 'https://api.maptiler.com/geocoding'),
            timeout=config.get('GEOCODER_TIMEOUT', 5.0),
            language=config.get('GEOCODER_LANGUAGE', 'es'),
            country=config.get('GEOCODER_COUNTRY', 'ar'),
        )

    def lookup(self, location):
        if not location or not location.strip():
            return None
        if not self.api_key:
            logger.warning("Geocoding disabled (no MAPTILER_API_KEY); skipping %r", location)
            return None

        url = f"{self.base_url}/{quote(location.strip(), safe='')}.json"
        params = {'key': self.api_key}
        if self.language:
            params['language'] = self.language
        if self.country:
            params['country'] = self.country

        logger.debug("Geocoding location %r", location)
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.Timeout:
            logger.error("Geocoding timed out after %ss for %r", self.timeout, location)
            return None
        except requests.exceptions.RequestException as e:
            logger.error("Geocoding request failed for %r: %s", location, e)
            return None
        except ValueError as e:
            logger.error("Geocoding returned invalid JSON for %r: %s", location, e)
            return None

        features = data.get('features') if isinstance(data, dict) else None
        if not features:
            logger.info("No coordinates found for location %r", location)
            return None

        feature = select_feature(features)
        try:
            longitude, latitude = feature['center'][:2]
            coordinates = Coordinates(float(latitude), float(longitude))
        except (KeyError, TypeError, ValueError) as e:
            logger.error("Unusable geocoding feature for %r: %s", location, e)
            return None

        logger.info("Selected %s for %r (%s)", coordinates, location, feature.get('place_name'))
        return coordinates
