"""
Address search and reverse geocoding for the location step.

Mapbox is used when MAPBOX_ACCESS_TOKEN is configured; reverse lookups
fall back to OpenStreetMap Nominatim.
"""
import os
import re
import logging
from typing import Optional, Dict, Any, List
from urllib.parse import quote

import requests
from django.conf import settings

from backend.core.cache_utils import GEOCODE_CACHE_TTL, cached_query

logger = logging.getLogger(__name__)

MAPBOX_GEOCODING_URL = 'https://api.mapbox.com/geocoding/v5/mapbox.places'
NOMINATIM_REVERSE_URL = 'https://nominatim.openstreetmap.org/reverse'

# Default search bias (Delhi)
DEFAULT_PROXIMITY = '77.1025,28.7041'
SEARCH_TYPES = 'address,place,postcode,poi,neighborhood,locality'
REQUEST_TIMEOUT = 10

POSTAL_CODE_IN_TEXT = re.compile(r'\b(\d{6})\b')


class GeocodingError(Exception):
    """Upstream geocoder failed"""


class GeocodingNotConfigured(GeocodingError):
    """No Mapbox token configured"""


def get_mapbox_token() -> str:
    return getattr(settings, 'MAPBOX_ACCESS_TOKEN', os.getenv('MAPBOX_ACCESS_TOKEN', '')) or ''


def _user_agent() -> str:
    return getattr(settings, 'NOMINATIM_USER_AGENT', os.getenv('NOMINATIM_USER_AGENT', 'merchant-onboarding/1.0'))


@cached_query(cache_ttl=GEOCODE_CACHE_TTL, key_prefix="geocode_search")
def search_places(query: str) -> List[Dict[str, Any]]:
    """
    Forward geocode a free-text query within India.

    Returns:
        list of {place_name, center: [lng, lat], text, context}, unique by place_name
    """
    query = (query or '').strip()
    if len(query) <= 2:
        return []

    token = get_mapbox_token()
    if not token:
        raise GeocodingNotConfigured('Mapbox access token is not configured')

    params = {
        'access_token': token,
        'country': 'IN',
        'limit': 10,
        'language': 'en',
        'types': SEARCH_TYPES,
        'proximity': DEFAULT_PROXIMITY,
        'autocomplete': 'true',
    }
    try:
        response = requests.get(f"{MAPBOX_GEOCODING_URL}/{quote(query)}.json", params=params, timeout=REQUEST_TIMEOUT)
        response.raise_for_status()
        features = response.json().get('features') or []
    except (requests.exceptions.RequestException, ValueError) as e:
        logger.error(f"Mapbox search failed for '{query}': {str(e)}")
        raise GeocodingError('Address search failed') from e

    seen = set()
    results = []
    for feature in features:
        place_name = feature.get('place_name')
        if not place_name or place_name in seen:
            continue
        seen.add(place_name)
        results.append({
            'place_name': place_name,
            'center': feature.get('center'),
            'text': feature.get('text'),
            'context': feature.get('context') or [],
        })
    return results


def parse_mapbox_feature(feature: Dict[str, Any]) -> Dict[str, Any]:
    """Split a Mapbox feature into address parts"""
    place_name = feature.get('place_name') or ''
    postal_code = city = state = ''
    for item in feature.get('context') or []:
        kind = str(item.get('id') or '').split('.', 1)[0]
        text = item.get('text') or ''
        if kind == 'postcode' and not postal_code:
            postal_code = text
        elif kind in ('place', 'locality', 'district') and not city:
            city = text
        elif kind == 'region' and not state:
            state = text

    if not postal_code:
        match = POSTAL_CODE_IN_TEXT.search(place_name)
        if match:
            postal_code = match.group(1)
    if not city:
        city = feature.get('text') or ''

    return {
        'full_address': place_name,
        'city': city,
        'state': state,
        'postal_code': postal_code,
        'source': 'mapbox',
    }


def parse_nominatim_result(data: Dict[str, Any]) -> Dict[str, Any]:
    address = data.get('address') or {}
    city = (address.get('city') or address.get('town') or address.get('village')
            or address.get('county') or address.get('state_district') or '')
    return {
        'full_address': data.get('display_name') or '',
        'city': city,
        'state': address.get('state') or '',
        'postal_code': address.get('postcode') or '',
        'source': 'nominatim',
    }


def _reverse_mapbox(lat: float, lng: float, token: str) -> Optional[Dict[str, Any]]:
    try:
        response = requests.get(
            f"{MAPBOX_GEOCODING_URL}/{lng},{lat}.json",
            params={'access_token': token, 'limit': 1},
            timeout=REQUEST_TIMEOUT,
        )
        response.raise_for_status()
        features = response.json().get('features') or []
    except (requests.exceptions.RequestException, ValueError) as e:
        logger.warning(f"Mapbox reverse geocode failed for {lat},{lng}: {str(e)}")
        return None
    if not features:
        return None
    return parse_mapbox_feature(features[0])


def _reverse_nominatim(lat: float, lng: float) -> Optional[Dict[str, Any]]:
    try:
        response = requests.get(
            NOMINATIM_REVERSE_URL,
            params={'format': 'json', 'lat': lat, 'lon': lng, 'addressdetails': 1},
            headers={'User-Agent': _user_agent()},
            timeout=REQUEST_TIMEOUT,
        )
        response.raise_for_status()
        data = response.json()
    except (requests.exceptions.RequestException, ValueError) as e:
        logger.warning(f"Nominatim reverse geocode failed for {lat},{lng}: {str(e)}")
        return None
    if not data or data.get('error'):
        return None
    return parse_nominatim_result(data)


@cached_query(cache_ttl=GEOCODE_CACHE_TTL, key_prefix="geocode_reverse")
def reverse_geocode(lat: float, lng: float) -> Dict[str, Any]:
    """
    Address parts for a coordinate.

    Raises:
        GeocodingError: when neither geocoder returned a result
    """
    token = get_mapbox_token()
    result = _reverse_mapbox(lat, lng, token) if token else None
    if result is None:
        result = _reverse_nominatim(lat, lng)
    if result is None:
        raise GeocodingError('Could not resolve address for this location')
    result['latitude'] = lat
    result['longitude'] = lng
    return result
