"""Tests for waitlist signup and admin approval."""

from django.test import TestCase, override_settings
from django.urls import reverse

from apps.accounts.models import User
from .models import WaitlistEntry
from .services import (
    AlreadyOnWaitlist,
    WaitlistError,
    approve_entry,
    join_waitlist,
    list_entries,
    set_status,
    status_counts,
)


def signup_data(email='Owner@Example.com', **extra):
    data = {
        'email': email,
        'phone_number': '+40 712 345 678',
        'name': 'Ana Popescu',
        'business_name': 'Nordic Brew Coffee',
        'business_description': 'Specialty coffee shop',
        'business_url': 'https://nordicbrew.example',
        'message': '',
    }
    data.update(extra)
    return data


class JoinWaitlistTests(TestCase):

    def test_creates_pending_entry_with_lowercase_email(self):
        entry = join_waitlist(signup_data())
        self.assertEqual(entry.email, 'owner@example.com')
        self.assertEqual(entry.status, WaitlistEntry.Status.PENDING)

    def test_required_fields(self):
        with self.assertRaises(WaitlistError):
            join_waitlist(signup_data(business_url='  '))

    def test_invalid_email(self):
        with self.assertRaises(WaitlistError) as ctx:
            join_waitlist(signup_data(email='not an email'))
        self.assertEqual(ctx.exception.message, 'Please enter a valid email address')

    def test_invalid_phone(self):
        for phone in ('12345', 'call me maybe'):
            with self.assertRaises(WaitlistError):
                join_waitlist(signup_data(phone_number=phone))

    def test_duplicate_email(self):
        join_waitlist(signup_data())
        with self.assertRaises(AlreadyOnWaitlist) as ctx:
            join_waitlist(signup_data(email='owner@example.com'))
        self.assertEqual(ctx.exception.status, 409)


class AdminServiceTests(TestCase):

    def setUp(self):
        self.first = join_waitlist(signup_data('first@example.com', business_name='Rock Gym'))
        self.second = join_waitlist(signup_data('second@example.com', name='Mihai'))

    def test_list_and_search(self):
        self.assertEqual(list_entries().count(), 2)
        self.assertEqual(list(list_entries(query='rock')), [self.first])
        self.assertEqual(list(list_entries(query='MIHAI')), [self.second])

    def test_status_filter_and_counts(self):
        set_status(self.first, WaitlistEntry.Status.REJECTED)

        self.assertEqual(list(list_entries(status='rejected')), [self.first])
        self.assertEqual(
            status_counts(),
            {'total': 2, 'pending': 1, 'approved': 0, 'rejected': 1}
        )

    @override_settings(SITE_URL='https://reviewpasta.test')
    def test_approve_creates_user_and_link(self):
        entry, link = approve_entry(self.first)

        self.assertEqual(entry.status, WaitlistEntry.Status.APPROVED)
        user = User.objects.get(email='first@example.com')
        self.assertFalse(user.has_usable_password())
        self.assertTrue(link.startswith('https://reviewpasta.test/accounts/magic/'))

    def test_approve_existing_user(self):
        User.objects.create_user(email='first@example.com', password='pass12345')
        approve_entry(self.first)
        self.assertEqual(User.objects.filter(email='first@example.com').count(), 1)

    def test_unknown_status(self):
        with self.assertRaises(WaitlistError):
            set_status(self.first, 'maybe')


class SignupViewTests(TestCase):

    def test_signup_page(self):
        response = self.client.get(reverse('waitlist:signup'))
        self.assertEqual(response.status_code, 200)

    def test_signup_submitted(self):
        response = self.client.post(reverse('waitlist:signup'), signup_data())
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.context['submitted'])
        self.assertTrue(WaitlistEntry.objects.filter(email='owner@example.com').exists())

    def test_signup_duplicate_shows_error(self):
        join_waitlist(signup_data())
        response = self.client.post(reverse('waitlist:signup'), signup_data())
        self.assertContains(response, 'This email is already on the waitlist')

    def test_errors_follow_interface_language(self):
        join_waitlist(signup_data())
        response = self.client.post(
            reverse('waitlist:signup'), signup_data(), HTTP_ACCEPT_LANGUAGE='ro'
        )
        self.assertContains(response, 'Ești deja pe lista de așteptare!')


class AdminViewTests(TestCase):

    def setUp(self):
        self.admin = User.objects.create_user(email='admin@example.com', password='pass12345', is_staff=True)
        self.entry = join_waitlist(signup_data())

    def test_non_admin_redirected(self):
        user = User.objects.create_user(email='user@example.com', password='pass12345')
        self.client.force_login(user)
        response = self.client.get(reverse('waitlist:admin_list'))
        self.assertRedirects(response, reverse('businesses:index'))

    def test_admin_list(self):
        self.client.force_login(self.admin)
        response = self.client.get(reverse('waitlist:admin_list'), {'status': 'pending', 'q': 'nordic'})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(list(response.context['entries']), [self.entry])
        self.assertEqual(response.context['counts']['pending'], 1)

    def test_approve_shows_magic_link_once(self):
        self.client.force_login(self.admin)
        response = self.client.post(reverse('waitlist:approve', args=[self.entry.id]), follow=True)

        self.entry.refresh_from_db()
        self.assertEqual(self.entry.status, WaitlistEntry.Status.APPROVED)
        self.assertIn('/accounts/magic/', response.context['magic_link']['url'])

        response = self.client.get(reverse('waitlist:admin_list'))
        self.assertIsNone(response.context['magic_link'])

    def test_reject_and_reset(self):
        self.client.force_login(self.admin)
        self.client.post(reverse('waitlist:reject', args=[self.entry.id]))
        self.entry.refresh_from_db()
        self.assertEqual(self.entry.status, WaitlistEntry.Status.REJECTED)

        self.client.post(reverse('waitlist:reset', args=[self.entry.id]))
        self.entry.refresh_from_db()
        self.assertEqual(self.entry.status, WaitlistEntry.Status.PENDING)
