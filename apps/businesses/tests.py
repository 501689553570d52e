"""Tests for businesses app: stores, local migration, views."""

import json
import tempfile
from datetime import datetime, timezone as dt_timezone
from io import StringIO
from pathlib import Path

from django.core.exceptions import ImproperlyConfigured
from django.core.management import call_command
from django.test import TestCase, override_settings
from django.urls import reverse

from apps.accounts.models import User
from .local_store import LocalBusinessStore, parse_timestamp
from .migration import migrate_local_businesses, reset_migration, should_run_migration
from .models import Business, make_slug
from .services import (
    BusinessError,
    BusinessNotFound,
    DatabaseBusinessStore,
    DuplicateSlugError,
    get_business_store,
)


def business_data(name='Nordic Brew Coffee', **extra):
    data = {
        'name': name,
        'place_id': 'ChIJ-test-place',
        'location': 'Iași, Romania',
        'description': 'Specialty coffee',
    }
    data.update(extra)
    return data


class BusinessModelTests(TestCase):

    def test_slug_transliterates_name(self):
        self.assertEqual(make_slug('Scorpions Kick Boxing Iași'), 'scorpions-kick-boxing-iasi')

    def test_slug_set_on_save(self):
        business = Business.objects.create(name='The Rock Gym Copou', place_id='abc')
        self.assertEqual(business.slug, 'the-rock-gym-copou')

    def test_review_and_google_urls(self):
        business = Business(name='Cafe', slug='cafe', place_id='PLACE123')
        self.assertEqual(business.get_review_path(), '/review/cafe')
        self.assertEqual(
            business.get_google_review_url(),
            'https://search.google.com/local/writereview?placeid=PLACE123'
        )


class DatabaseStoreTests(TestCase):

    def setUp(self):
        self.store = DatabaseBusinessStore()
        self.owner = User.objects.create_user(email='owner@example.com', password='pass12345')

    def test_add_and_get_by_slug(self):
        business_id = self.store.add_business(business_data(owner=self.owner))
        business = self.store.get_business_by_slug('nordic-brew-coffee')

        self.assertEqual(str(business.id), business_id)
        self.assertEqual(business.owner, self.owner)
        self.assertEqual(business.location, 'Iași, Romania')

    def test_unknown_slug_returns_none(self):
        self.assertIsNone(self.store.get_business_by_slug('missing'))

    def test_duplicate_slug_rejected(self):
        self.store.add_business(business_data())
        with self.assertRaises(DuplicateSlugError) as ctx:
            self.store.add_business(business_data(name='Nordic  Brew Coffee'))
        self.assertEqual(ctx.exception.status, 409)

    def test_name_and_place_required(self):
        with self.assertRaises(BusinessError):
            self.store.add_business({'name': 'Only name'})
        with self.assertRaises(BusinessError):
            self.store.add_business({'place_id': 'only-place'})

    def test_all_businesses_newest_first(self):
        self.store.add_business(business_data('Older', created_at=datetime(2024, 1, 1, tzinfo=dt_timezone.utc)))
        self.store.add_business(business_data('Newer', created_at=datetime(2025, 1, 1, tzinfo=dt_timezone.utc)))

        names = [b.name for b in self.store.get_all_businesses()]
        self.assertEqual(names, ['Newer', 'Older'])

    def test_update_description(self):
        business_id = self.store.add_business(business_data())
        self.store.update_business_description(business_id, '  Roastery and cafe  ')
        self.assertEqual(self.store.get_business(business_id).description, 'Roastery and cafe')

    def test_update_description_validation(self):
        business_id = self.store.add_business(business_data())
        with self.assertRaises(BusinessError):
            self.store.update_business_description(business_id, '   ')
        with self.assertRaises(BusinessError):
            self.store.update_business_description(business_id, 'x' * 501)

    def test_delete_business(self):
        business_id = self.store.add_business(business_data())
        self.store.delete_business(business_id)
        self.assertIsNone(self.store.get_business(business_id))
        with self.assertRaises(BusinessNotFound):
            self.store.delete_business(business_id)

    def test_can_edit_business(self):
        business_id = self.store.add_business(business_data(owner=self.owner))
        stranger = User.objects.create_user(email='stranger@example.com', password='pass12345')
        admin = User.objects.create_user(email='admin@example.com', password='pass12345', is_staff=True)

        self.assertTrue(self.store.can_edit_business(business_id, self.owner))
        self.assertTrue(self.store.can_edit_business(business_id, admin))
        self.assertFalse(self.store.can_edit_business(business_id, stranger))
        self.assertFalse(self.store.can_edit_business('not-a-uuid', self.owner))

    def test_unknown_backend(self):
        with self.assertRaises(ImproperlyConfigured):
            get_business_store('redis')


class LocalStoreTests(TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.path = Path(self.tmp.name) / 'businesses.json'
        self.store = LocalBusinessStore(self.path)

    def tearDown(self):
        self.tmp.cleanup()

    def test_missing_file_is_empty(self):
        self.assertEqual(self.store.get_all_businesses(), [])
        self.assertEqual(self.store.count(), 0)

    def test_add_persists_json(self):
        business_id = self.store.add_business(business_data())

        records = json.loads(self.path.read_text(encoding='utf-8'))
        self.assertEqual(len(records), 1)
        self.assertEqual(records[0]['id'], business_id)
        self.assertEqual(records[0]['slug'], 'nordic-brew-coffee')
        self.assertEqual(self.store.get_business(business_id).name, 'Nordic Brew Coffee')

    def test_duplicate_slug_rejected(self):
        self.store.add_business(business_data())
        with self.assertRaises(DuplicateSlugError):
            self.store.add_business(business_data())

    def test_update_and_delete(self):
        business_id = self.store.add_business(business_data())
        self.store.update_business_description(business_id, 'New text')
        self.assertEqual(self.store.get_business_by_slug('nordic-brew-coffee').description, 'New text')

        self.store.delete_business(business_id)
        self.assertEqual(self.store.count(), 0)

    def test_legacy_integer_ids_are_stable(self):
        self.path.write_text(json.dumps([
            {'id': 7, 'name': 'Legacy', 'slug': 'legacy', 'place_id': 'p', 'created_at': '2024-03-01T10:00:00'},
        ]))
        first = self.store.get_business_by_slug('legacy')
        second = self.store.get_business_by_slug('legacy')
        self.assertEqual(first.id, second.id)

        self.store.delete_business(first.id)
        self.assertEqual(self.store.count(), 0)

    @override_settings(BUSINESS_STORE='local')
    def test_selected_by_setting(self):
        self.assertIsInstance(get_business_store(), LocalBusinessStore)

    def test_parse_timestamp(self):
        self.assertIsNone(parse_timestamp(None))
        self.assertIsNone(parse_timestamp('yesterday-ish'))
        parsed = parse_timestamp('2024-03-01T10:00:00')
        self.assertEqual(parsed.year, 2024)
        self.assertIsNotNone(parsed.tzinfo)


class LocalMigrationTests(TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.source = LocalBusinessStore(Path(self.tmp.name) / 'businesses.json')
        self.marker = Path(self.tmp.name) / '.migrated'

    def tearDown(self):
        self.tmp.cleanup()

    def write_records(self, records):
        self.source.path.write_text(json.dumps(records), encoding='utf-8')

    def test_migrates_and_keeps_created_at(self):
        self.write_records([
            {'id': 1, 'name': 'Cafe One', 'slug': 'cafe-one', 'place_id': 'p1',
             'created_at': '2023-05-04T12:00:00Z'},
            {'id': 2, 'name': 'Cafe Two', 'slug': 'cafe-two', 'place_id': 'p2',
             'location': 'Iași', 'created_at': '2023-06-01T08:30:00Z'},
        ])

        self.assertTrue(should_run_migration(self.source, marker=self.marker))
        result = migrate_local_businesses(source=self.source, marker=self.marker)

        self.assertTrue(result.success)
        self.assertEqual(result.migrated_count, 2)
        self.assertEqual(result.errors, [])

        cafe = Business.objects.get(slug='cafe-one')
        self.assertEqual(cafe.created_at, datetime(2023, 5, 4, 12, 0, tzinfo=dt_timezone.utc))
        self.assertIsNone(cafe.owner)
        self.assertFalse(should_run_migration(self.source, marker=self.marker))

    def test_skips_existing_slugs(self):
        Business.objects.create(name='Cafe One', slug='cafe-one', place_id='p1')
        self.write_records([
            {'name': 'Cafe One', 'slug': 'cafe-one', 'place_id': 'p1'},
            {'name': 'Cafe Two', 'slug': 'cafe-two', 'place_id': 'p2'},
        ])

        result = migrate_local_businesses(source=self.source, marker=self.marker)

        self.assertEqual(result.migrated_count, 1)
        self.assertEqual(result.skipped_count, 1)
        self.assertEqual(Business.objects.count(), 2)

    def test_bad_record_collected_not_fatal(self):
        self.write_records([
            {'name': 'No Place', 'slug': 'no-place'},
            {'name': 'Cafe Two', 'slug': 'cafe-two', 'place_id': 'p2'},
        ])

        result = migrate_local_businesses(source=self.source, marker=self.marker)

        self.assertFalse(result.success)
        self.assertEqual(result.migrated_count, 1)
        self.assertEqual(len(result.errors), 1)
        self.assertTrue(result.errors[0].startswith('No Place:'))
        self.assertTrue(self.marker.exists())

    def test_numeric_fields_in_legacy_records(self):
        self.write_records([
            {'name': 'Good', 'slug': 'good', 'place_id': 'p1'},
            {'name': 'Legacy', 'slug': 'legacy', 'place_id': 12345},
            {'name': 'After', 'slug': 'after', 'place_id': 'p3'},
        ])

        result = migrate_local_businesses(source=self.source, marker=self.marker)

        self.assertTrue(result.success)
        self.assertEqual(result.migrated_count, 3)
        self.assertEqual(Business.objects.get(slug='legacy').place_id, '12345')

    def test_unexpected_error_does_not_stop_migration(self):
        class FlakyStore(DatabaseBusinessStore):
            def add_business(self, data):
                if data['slug'] == 'broken':
                    raise RuntimeError('disk on fire')
                return super().add_business(data)

        self.write_records([
            {'name': 'Good', 'slug': 'good', 'place_id': 'p1'},
            {'name': 'Broken', 'slug': 'broken', 'place_id': 'p2'},
            {'name': 'After', 'slug': 'after', 'place_id': 'p3'},
        ])

        result = migrate_local_businesses(source=self.source, target=FlakyStore(), marker=self.marker)

        self.assertFalse(result.success)
        self.assertEqual(result.migrated_count, 2)
        self.assertEqual(result.errors, ['Broken: disk on fire'])
        self.assertTrue(Business.objects.filter(slug='after').exists())
        self.assertTrue(self.marker.exists())

    def test_second_run_is_noop_unless_forced(self):
        self.write_records([{'name': 'Cafe One', 'slug': 'cafe-one', 'place_id': 'p1'}])
        migrate_local_businesses(source=self.source, marker=self.marker)
        Business.objects.all().delete()

        result = migrate_local_businesses(source=self.source, marker=self.marker)
        self.assertEqual(result.migrated_count, 0)
        self.assertFalse(Business.objects.exists())

        result = migrate_local_businesses(source=self.source, marker=self.marker, force=True)
        self.assertEqual(result.migrated_count, 1)

    def test_empty_store_marks_completion(self):
        result = migrate_local_businesses(source=self.source, marker=self.marker)
        self.assertTrue(result.success)
        self.assertTrue(self.marker.exists())

        reset_migration(marker=self.marker)
        self.assertFalse(self.marker.exists())

    def test_dry_run_writes_nothing(self):
        self.write_records([{'name': 'Cafe One', 'slug': 'cafe-one', 'place_id': 'p1'}])
        result = migrate_local_businesses(source=self.source, marker=self.marker, dry_run=True)

        self.assertEqual(result.migrated_count, 1)
        self.assertFalse(Business.objects.exists())
        self.assertFalse(self.marker.exists())

    def test_management_command(self):
        self.write_records([{'name': 'Cafe One', 'slug': 'cafe-one', 'place_id': 'p1'}])
        out = StringIO()
        with override_settings(LOCAL_MIGRATION_MARKER=self.marker):
            call_command('migrate_local_businesses', path=str(self.source.path), stdout=out)

        self.assertIn('Migrated: 1', out.getvalue())
        self.assertTrue(Business.objects.filter(slug='cafe-one').exists())


class SeedCommandTests(TestCase):

    def test_seeds_empty_store_once(self):
        call_command('seed_demo_businesses', stdout=StringIO())
        self.assertEqual(
            set(Business.objects.values_list('slug', flat=True)),
            {'the-rock-gym-copou', 'scorpions-kick-boxing-iasi'}
        )

        call_command('seed_demo_businesses', stdout=StringIO())
        self.assertEqual(Business.objects.count(), 2)


class BusinessViewTests(TestCase):

    def setUp(self):
        self.owner = User.objects.create_user(email='owner@example.com', password='pass12345')
        self.admin = User.objects.create_user(email='admin@example.com', password='pass12345', is_staff=True)
        self.business = Business.objects.create(
            name='Nordic Brew Coffee', place_id='p1', owner=self.owner
        )

    def test_index_lists_businesses(self):
        response = self.client.get(reverse('businesses:index'))
        self.assertEqual(response.status_code, 200)
        self.assertContains(response, 'Nordic Brew Coffee')
        self.assertContains(response, '/review/nordic-brew-coffee')

    def test_add_requires_login(self):
        response = self.client.get(reverse('businesses:add'))
        self.assertEqual(response.status_code, 302)
        self.assertIn('/accounts/login/', response.url)

    def test_add_business_sets_owner(self):
        self.client.force_login(self.owner)
        response = self.client.post(reverse('businesses:add'), {
            'name': 'Scorpions Kick Boxing Iași',
            'place_id': 'ChIJ96NAZC77ykARP_uaR7eKjRs',
        })

        self.assertRedirects(response, '/review/scorpions-kick-boxing-iasi', fetch_redirect_response=False)
        business = Business.objects.get(slug='scorpions-kick-boxing-iasi')
        self.assertEqual(business.owner, self.owner)

    def test_add_duplicate_shows_error(self):
        self.client.force_login(self.owner)
        response = self.client.post(reverse('businesses:add'), {
            'name': 'Nordic Brew Coffee',
            'place_id': 'p2',
        })
        self.assertEqual(response.status_code, 200)
        self.assertContains(response, 'A business with this name already exists')

    def test_owner_edits_description(self):
        self.client.force_login(self.owner)
        url = reverse('businesses:edit_description', args=[self.business.id])
        response = self.client.post(url, {'description': 'Best flat white in town'})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['description'], 'Best flat white in town')

    def test_stranger_cannot_edit_description(self):
        stranger = User.objects.create_user(email='stranger@example.com', password='pass12345')
        self.client.force_login(stranger)
        url = reverse('businesses:edit_description', args=[self.business.id])
        response = self.client.post(url, {'description': 'Hacked'})

        self.assertEqual(response.status_code, 403)
        self.business.refresh_from_db()
        self.assertEqual(self.business.description, '')

    def test_description_too_long(self):
        self.client.force_login(self.admin)
        url = reverse('businesses:edit_description', args=[self.business.id])
        response = self.client.post(url, {'description': 'x' * 501})
        self.assertEqual(response.status_code, 400)

    def test_admin_list_requires_admin(self):
        self.client.force_login(self.owner)
        response = self.client.get(reverse('businesses:admin_list'))
        self.assertRedirects(response, reverse('businesses:index'))

        self.client.force_login(self.admin)
        response = self.client.get(reverse('businesses:admin_list'))
        self.assertEqual(response.status_code, 200)
        self.assertContains(response, 'Nordic Brew Coffee')

    def test_admin_deletes_business(self):
        self.client.force_login(self.admin)
        response = self.client.post(reverse('businesses:admin_delete', args=[self.business.id]))

        self.assertRedirects(response, reverse('businesses:admin_list'))
        self.assertFalse(Business.objects.filter(id=self.business.id).exists())


class InterfaceLanguageTests(TestCase):

    def setUp(self):
        Business.objects.create(name='Nordic Brew Coffee', place_id='p1')

    def test_english_by_default(self):
        response = self.client.get(reverse('businesses:index'))
        self.assertContains(response, 'Join the waitlist')
        self.assertContains(response, 'Review page')

    def test_accept_language_romanian(self):
        response = self.client.get(reverse('businesses:index'), HTTP_ACCEPT_LANGUAGE='ro')
        self.assertContains(response, 'Alătură-te listei de așteptare')
        self.assertContains(response, 'Pagina de recenzie')
        self.assertNotContains(response, 'Review page')

    def test_language_switch_persists(self):
        response = self.client.post(reverse('set_language'), {'language': 'ro', 'next': '/'})
        self.assertEqual(response.status_code, 302)

        response = self.client.get(reverse('reviews:page', args=['nordic-brew-coffee']))
        self.assertContains(response, 'Evaluează experiența ta:')
        self.assertEqual(response.context['language'].value, 'ro')
