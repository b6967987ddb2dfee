"""
Store identity and store-hours helpers shared by the onboarding wizard
and the merchant dashboard.
"""
import re
from typing import Optional

from django.apps import apps

from .models import MerchantStore, StoreOperatingHours

STORE_ID_PATTERN = re.compile(r'^GMMC(\d+)$')
STORE_ID_BASE = 1000

STORE_TYPES = [choice for choice, _ in MerchantStore.STORE_TYPE_CHOICES]

FOOD_BUSINESS_TYPES = {'RESTAURANT', 'CAFE', 'BAKERY', 'CLOUD_KITCHEN', 'FOOD_TRUCK', 'ICE_CREAM_PARLOR'}
PHARMA_BUSINESS_TYPES = {'PHARMA'}

DAYS = StoreOperatingHours.DAYS


def generate_store_public_id() -> str:
    """
    Next public store id (GMMC1001, GMMC1002, ...).

    Ids already reserved by in-progress registrations count as taken, so two
    drafts never receive the same id.
    """
    highest = STORE_ID_BASE
    for value in MerchantStore.objects.filter(store_id__startswith='GMMC').values_list('store_id', flat=True):
        match = STORE_ID_PATTERN.match(value or '')
        if match:
            highest = max(highest, int(match.group(1)))

    RegistrationProgress = apps.get_model('onboarding', 'RegistrationProgress')
    for form_data in RegistrationProgress.objects.values_list('form_data', flat=True):
        step_store = (form_data or {}).get('step_store') or {}
        match = STORE_ID_PATTERN.match(str(step_store.get('storePublicId') or ''))
        if match:
            highest = max(highest, int(match.group(1)))

    return f"GMMC{highest + 1}"


def normalize_store_type(value) -> str:
    """Uppercase, spaces to underscores; unknown values become OTHERS"""
    normalized = str(value or '').strip().upper().replace(' ', '_')
    return normalized if normalized in STORE_TYPES else 'OTHERS'


def is_food_business(store_type) -> bool:
    return str(store_type or '').strip().upper().replace(' ', '_') in FOOD_BUSINESS_TYPES


def is_pharma_business(store_type) -> bool:
    return str(store_type or '').strip().upper().replace(' ', '_') in PHARMA_BUSINESS_TYPES


def parse_minutes(value) -> Optional[int]:
    """'HH:MM' -> minutes since midnight, None when unparseable"""
    if value is None:
        return None
    parts = str(value).strip().split(':')
    if len(parts) < 2:
        return None
    try:
        hours, minutes = int(parts[0]), int(parts[1])
    except ValueError:
        return None
    return hours * 60 + minutes


def _time_or_none(value):
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def build_day_row(day: Optional[dict]) -> dict:
    """Normalize one wizard day ({closed, slot1_open, slot1_close, slot2_open, slot2_close})"""
    day = day or {}
    closed = bool(day.get('closed'))
    if closed:
        slot1_start = slot1_end = slot2_start = slot2_end = None
    else:
        slot1_start = _time_or_none(day.get('slot1_open', day.get('open')))
        slot1_end = _time_or_none(day.get('slot1_close', day.get('close')))
        slot2_start = _time_or_none(day.get('slot2_open'))
        slot2_end = _time_or_none(day.get('slot2_close'))

    duration = 0
    if not closed:
        for start, end in ((slot1_start, slot1_end), (slot2_start, slot2_end)):
            s, e = parse_minutes(start), parse_minutes(end)
            if s is not None and e is not None and e > s:
                duration += e - s

    return {
        'open': bool(slot1_start and slot1_end),
        'slot1_start': slot1_start,
        'slot1_end': slot1_end,
        'slot2_start': slot2_start,
        'slot2_end': slot2_end,
        'duration': duration,
        'closed': closed,
    }


def build_operating_hours(store_hours: Optional[dict]) -> dict:
    """
    Convert the wizard's store_hours object into StoreOperatingHours field values.
    """
    store_hours = store_hours or {}
    rows = {day: build_day_row(store_hours.get(day)) for day in DAYS}

    values = {}
    for day, row in rows.items():
        values[f'{day}_open'] = row['open']
        values[f'{day}_slot1_start'] = row['slot1_start']
        values[f'{day}_slot1_end'] = row['slot1_end']
        values[f'{day}_slot2_start'] = row['slot2_start']
        values[f'{day}_slot2_end'] = row['slot2_end']
        values[f'{day}_total_duration_minutes'] = row['duration']

    first = rows[DAYS[0]]
    values['closed_days'] = [day for day, row in rows.items() if row['closed']]
    values['same_for_all_days'] = all(row == first for row in rows.values())
    values['is_24_hours'] = all(
        not row['closed'] and row['slot1_start'] == '00:00' and row['slot1_end'] == '23:59'
        and not row['slot2_start'] and not row['slot2_end']
        for row in rows.values()
    )
    return values


def save_operating_hours(store: MerchantStore, store_hours: Optional[dict]) -> StoreOperatingHours:
    """Upsert the store's operating hours row"""
    hours, _ = StoreOperatingHours.objects.update_or_create(
        store=store,
        defaults=build_operating_hours(store_hours),
    )
    return hours


def operating_hours_to_dict(hours: StoreOperatingHours) -> dict:
    """Inverse of build_operating_hours, in the wizard's shape"""
    result = {}
    for day in DAYS:
        result[day] = {
            'closed': day in (hours.closed_days or []),
            'slot1_open': getattr(hours, f'{day}_slot1_start') or '',
            'slot1_close': getattr(hours, f'{day}_slot1_end') or '',
            'slot2_open': getattr(hours, f'{day}_slot2_start') or '',
            'slot2_close': getattr(hours, f'{day}_slot2_end') or '',
            'duration_minutes': getattr(hours, f'{day}_total_duration_minutes'),
        }
    return result


def get_store_for_parent(parent, store_ref) -> Optional[MerchantStore]:
    """
    Resolve a store by public id (GMMC...) or numeric id, limited to the parent.
    """
    if parent is None or store_ref in (None, ''):
        return None
    store_ref = str(store_ref).strip()
    queryset = MerchantStore.objects.filter(parent=parent)
    if store_ref.isdigit():
        store = queryset.filter(pk=int(store_ref)).first()
        if store:
            return store
    return queryset.filter(store_id=store_ref).first()
