"""
Tests for store identity, operating hours and dashboard settings
"""
from django.core.cache import cache
from django.test import TestCase
from rest_framework import status
from backend.core.models import AuditLog
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.stores.models import StoreSettings
from backend.stores.utils import (
    build_day_row, build_operating_hours, generate_store_public_id, get_store_for_parent, normalize_store_type,
    operating_hours_to_dict, parse_minutes, save_operating_hours,
)


def _week(**overrides):
    day = {'closed': False, 'slot1_open': '09:00', 'slot1_close': '13:00', 'slot2_open': '17:00', 'slot2_close': '22:00'}
    week = {d: dict(day) for d in ['monday', 'tuesday', 'wednesday', 'thursday', 'friday', 'saturday', 'sunday']}
    week.update(overrides)
    return week


class StoreIdTests(TestCase):
    """Test public store id generation"""

    def setUp(self):
        self.parent = TestDataFactory.create_merchant_parent()

    def test_first_id(self):
        self.assertEqual(generate_store_public_id(), 'GMMC1001')

    def test_increments_past_existing_store(self):
        store = TestDataFactory.create_store(self.parent)
        store.store_id = 'GMMC1010'
        store.save()
        self.assertEqual(generate_store_public_id(), 'GMMC1011')

    def test_ids_reserved_by_progress_are_skipped(self):
        TestDataFactory.create_progress(self.parent, form_data={'step_store': {'storePublicId': 'GMMC1020'}})
        self.assertEqual(generate_store_public_id(), 'GMMC1021')

    def test_malformed_ids_ignored(self):
        store = TestDataFactory.create_store(self.parent)
        store.store_id = 'GMMCabc'
        store.save()
        self.assertEqual(generate_store_public_id(), 'GMMC1001')


class StoreUtilsTests(TestCase):
    """Test store type and hours helpers"""

    def test_normalize_store_type(self):
        self.assertEqual(normalize_store_type('cloud kitchen'), 'CLOUD_KITCHEN')
        self.assertEqual(normalize_store_type('spaceship'), 'OTHERS')
        self.assertEqual(normalize_store_type(None), 'OTHERS')

    def test_parse_minutes(self):
        self.assertEqual(parse_minutes('09:30'), 570)
        self.assertIsNone(parse_minutes('930'))
        self.assertIsNone(parse_minutes('ab:cd'))
        self.assertIsNone(parse_minutes(None))

    def test_day_row_duration_sums_slots(self):
        row = build_day_row({'slot1_open': '09:00', 'slot1_close': '13:00', 'slot2_open': '17:00', 'slot2_close': '22:00'})
        self.assertTrue(row['open'])
        self.assertEqual(row['duration'], 540)

    def test_closed_day_has_no_slots(self):
        row = build_day_row({'closed': True, 'slot1_open': '09:00', 'slot1_close': '13:00'})
        self.assertFalse(row['open'])
        self.assertIsNone(row['slot1_start'])
        self.assertEqual(row['duration'], 0)

    def test_operating_hours_flags(self):
        values = build_operating_hours(_week(sunday={'closed': True}))
        self.assertEqual(values['closed_days'], ['sunday'])
        self.assertFalse(values['same_for_all_days'])
        self.assertFalse(values['is_24_hours'])
        self.assertEqual(values['monday_total_duration_minutes'], 540)

    def test_same_for_all_days(self):
        self.assertTrue(build_operating_hours(_week())['same_for_all_days'])

    def test_24_hours(self):
        day = {'slot1_open': '00:00', 'slot1_close': '23:59'}
        week = {d: dict(day) for d in ['monday', 'tuesday', 'wednesday', 'thursday', 'friday', 'saturday', 'sunday']}
        self.assertTrue(build_operating_hours(week)['is_24_hours'])

    def test_save_and_read_back_hours(self):
        parent = TestDataFactory.create_merchant_parent()
        store = TestDataFactory.create_store(parent)
        hours = save_operating_hours(store, _week(sunday={'closed': True}))
        days = operating_hours_to_dict(hours)
        self.assertTrue(days['sunday']['closed'])
        self.assertEqual(days['monday']['slot2_open'], '17:00')
        save_operating_hours(store, _week())
        hours.refresh_from_db()
        self.assertEqual(hours.closed_days, [])


class StoreLookupTests(TestCase):
    """Test store resolution scoped to a parent"""

    def setUp(self):
        self.parent = TestDataFactory.create_merchant_parent()
        self.other_parent = TestDataFactory.create_merchant_parent()
        self.store = TestDataFactory.create_store(self.parent)

    def test_lookup_by_public_id_and_pk(self):
        self.assertEqual(get_store_for_parent(self.parent, self.store.store_id), self.store)
        self.assertEqual(get_store_for_parent(self.parent, str(self.store.pk)), self.store)

    def test_lookup_is_scoped_to_parent(self):
        self.assertIsNone(get_store_for_parent(self.other_parent, self.store.store_id))

    def test_empty_reference(self):
        self.assertIsNone(get_store_for_parent(self.parent, ''))


class StoreAPITests(TestCase):
    """Test store listing and detail endpoints"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.parent = TestDataFactory.create_merchant_parent()
        self.client.authenticate_user(self.parent.user)
        self.draft = TestDataFactory.create_store(self.parent, name='Draft Cafe')
        self.submitted = TestDataFactory.create_store(self.parent, name='Live Cafe', approval_status='SUBMITTED')
        TestDataFactory.create_store(TestDataFactory.create_merchant_parent(), name='Foreign Cafe')

    def test_list_own_stores(self):
        response = self.client.get('/api/v1/stores/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual({s['store_name'] for s in response.data}, {'Draft Cafe', 'Live Cafe'})

    def test_list_filtered_by_status(self):
        response = self.client.get('/api/v1/stores/', {'approval_status': 'submitted'})
        self.assertEqual([s['store_name'] for s in response.data], ['Live Cafe'])

    def test_user_without_parent_forbidden(self):
        self.client.authenticate_user(TestDataFactory.create_user())
        response = self.client.get('/api/v1/stores/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_detail(self):
        response = self.client.get(f'/api/v1/stores/{self.draft.store_id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['parent_merchant_id'], self.parent.parent_merchant_id)

    def test_detail_missing(self):
        response = self.client.get('/api/v1/stores/GMMC9999/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_next_id(self):
        response = self.client.get('/api/v1/stores/next-id/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['store_id'], 'GMMC1004')

    def test_hours_none_until_saved(self):
        response = self.client.get(f'/api/v1/stores/{self.draft.store_id}/hours/')
        self.assertIsNone(response.data['hours'])
        save_operating_hours(self.draft, _week())
        response = self.client.get(f'/api/v1/stores/{self.draft.store_id}/hours/')
        self.assertTrue(response.data['hours']['same_for_all_days'])


class StoreSettingsAPITests(TestCase):
    """Test the delivery settings endpoint"""

    def setUp(self):
        cache.clear()
        self.client = AuthenticatedAPIClient()
        self.parent = TestDataFactory.create_merchant_parent()
        self.client.authenticate_user(self.parent.user)
        self.store = TestDataFactory.create_store(self.parent)

    def test_defaults_without_row(self):
        response = self.client.get('/api/v1/store-settings/', {'storeId': self.store.store_id})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['self_delivery'])
        self.assertTrue(response.data['platform_delivery'])

    def test_store_id_required(self):
        response = self.client.get('/api/v1/store-settings/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_foreign_store_not_found(self):
        foreign = TestDataFactory.create_store(TestDataFactory.create_merchant_parent())
        response = self.client.get('/api/v1/store-settings/', {'storeId': foreign.store_id})
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_patch_updates_booleans_and_invalidates_cache(self):
        self.client.get('/api/v1/store-settings/', {'storeId': self.store.store_id})
        response = self.client.patch('/api/v1/store-settings/', {
            'storeId': self.store.store_id, 'self_delivery': True, 'platform_delivery': 'yes',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        row = StoreSettings.objects.get(store=self.store)
        self.assertTrue(row.self_delivery)
        self.assertTrue(row.platform_delivery)
        response = self.client.get('/api/v1/store-settings/', {'storeId': self.store.store_id})
        self.assertTrue(response.data['self_delivery'])
        self.assertTrue(AuditLog.objects.filter(action='settings_update').exists())

    def test_patch_without_booleans_is_noop(self):
        response = self.client.patch('/api/v1/store-settings/', {'storeId': self.store.store_id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(StoreSettings.objects.filter(store=self.store).exists())
