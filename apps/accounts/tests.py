"""Tests for accounts app: login, magic links, rate limiting."""

from unittest.mock import patch

from django.test import TestCase, Client, override_settings
from django.urls import reverse

from .models import User
from .services.magic_link import build_magic_link, get_or_create_user, resolve_magic_link


class UserModelTests(TestCase):

    def test_email_is_lowercased(self):
        user = User.objects.create_user(email='Owner@Example.COM', password='testpass123')
        self.assertEqual(user.email, 'owner@example.com')

    def test_user_without_password_cannot_log_in_with_one(self):
        user = User.objects.create_user(email='magic@example.com')
        self.assertFalse(user.has_usable_password())

    def test_is_admin(self):
        user = User.objects.create_user(email='user@example.com', password='testpass123')
        admin = User.objects.create_user(email='admin@example.com', password='testpass123', is_staff=True)
        superuser = User.objects.create_superuser(email='root@example.com', password='testpass123')

        self.assertFalse(user.is_admin)
        self.assertTrue(admin.is_admin)
        self.assertTrue(superuser.is_admin)

        admin.is_active = False
        self.assertFalse(admin.is_admin)


class LoginTests(TestCase):

    def setUp(self):
        self.client = Client()
        self.user = User.objects.create_user(email='login@example.com', password='testpass123')

    def test_login_page_loads(self):
        response = self.client.get(reverse('accounts:login'))
        self.assertEqual(response.status_code, 200)

    def test_successful_login(self):
        response = self.client.post(reverse('accounts:login'), {
            'email': 'Login@Example.com',
            'password': 'testpass123',
        })
        self.assertEqual(response.status_code, 302)
        self.assertEqual(self.client.session['_auth_user_id'], str(self.user.pk))

    def test_login_with_wrong_password(self):
        response = self.client.post(reverse('accounts:login'), {
            'email': 'login@example.com',
            'password': 'wrong',
        })
        self.assertEqual(response.status_code, 200)
        self.assertContains(response, 'Wrong email or password')

    def test_login_with_next_parameter(self):
        login_url = reverse('accounts:login') + '?next=/add/'
        response = self.client.post(login_url, {'email': 'login@example.com', 'password': 'testpass123'})
        self.assertEqual(response.url, '/add/')

    def test_login_ignores_external_next(self):
        login_url = reverse('accounts:login') + '?next=https://evil.example/'
        response = self.client.post(login_url, {'email': 'login@example.com', 'password': 'testpass123'})
        self.assertEqual(response.url, '/')

    def test_authenticated_user_redirected_from_login(self):
        self.client.force_login(self.user)
        response = self.client.get(reverse('accounts:login'))
        self.assertRedirects(response, reverse('businesses:index'))

    def test_logout(self):
        self.client.force_login(self.user)
        response = self.client.get(reverse('accounts:logout'))
        self.assertRedirects(response, reverse('businesses:index'))
        self.assertNotIn('_auth_user_id', self.client.session)


class MagicLinkTests(TestCase):

    def test_get_or_create_user(self):
        user, created = get_or_create_user(' New@Example.com ', 'Ana')
        self.assertTrue(created)
        self.assertEqual(user.email, 'new@example.com')
        self.assertEqual(user.first_name, 'Ana')

        same, created = get_or_create_user('new@example.com')
        self.assertFalse(created)
        self.assertEqual(same, user)

    @override_settings(SITE_URL='https://reviewpasta.test/')
    def test_link_format(self):
        user, _ = get_or_create_user('new@example.com')
        link = build_magic_link(user)
        self.assertTrue(link.startswith('https://reviewpasta.test/accounts/magic/'))

    def test_link_logs_in_once(self):
        user, _ = get_or_create_user('new@example.com')
        link = build_magic_link(user, base_url='http://testserver')
        path = link.replace('http://testserver', '')

        response = self.client.get(path)
        self.assertRedirects(response, reverse('businesses:index'))
        self.assertEqual(self.client.session['_auth_user_id'], str(user.pk))

        # last_login changed, so the token no longer validates
        self.client.logout()
        response = self.client.get(path)
        self.assertRedirects(response, reverse('accounts:login'))

    def test_resolve_rejects_garbage(self):
        self.assertIsNone(resolve_magic_link('not-base64', 'token'))
        user, _ = get_or_create_user('new@example.com')
        link = build_magic_link(user, base_url='')
        uidb64 = link.split('/')[-3]
        self.assertIsNone(resolve_magic_link(uidb64, 'bad-token'))


RATE_LIMITS = {'/signup/': 2, '/accounts/login/': None}


@override_settings(RATE_LIMIT_REQUESTS=3, RATE_LIMIT_WINDOW=60, RATE_LIMIT_PATHS=RATE_LIMITS)
class RateLimitingTests(TestCase):
    """Tests for rate limiting middleware."""

    def test_rate_limit_blocks_after_threshold(self):
        url = reverse('accounts:login')
        for _ in range(3):
            self.client.post(url, {'email': 'x@example.com', 'password': 'wrong'})

        response = self.client.post(url, {'email': 'x@example.com', 'password': 'wrong'})
        self.assertEqual(response.status_code, 429)
        self.assertIn('Retry-After', response)

    def test_rate_limit_allows_get_requests(self):
        url = reverse('accounts:login')
        for _ in range(10):
            response = self.client.get(url)
            self.assertEqual(response.status_code, 200)

    def test_rate_limit_per_ip(self):
        url = reverse('waitlist:signup')

        client1 = Client(REMOTE_ADDR='1.1.1.1')
        for _ in range(2):
            client1.post(url, {})
        self.assertEqual(client1.post(url, {}).status_code, 429)

        client2 = Client(REMOTE_ADDR='2.2.2.2')
        response = client2.post(url, {})
        self.assertEqual(response.status_code, 200)

    def test_limits_are_per_path(self):
        signup = reverse('waitlist:signup')
        for _ in range(2):
            self.client.post(signup, {})
        self.assertEqual(self.client.post(signup, {}).status_code, 429)

        response = self.client.post(reverse('accounts:login'), {'email': 'x@example.com', 'password': 'wrong'})
        self.assertEqual(response.status_code, 200)

    def test_unprotected_paths_pass(self):
        for _ in range(5):
            response = self.client.post(reverse('accounts:logout'))
            self.assertNotEqual(response.status_code, 429)


class MiddlewareTests(TestCase):
    """Tests for rate limit middleware functionality."""

    def test_middleware_extracts_ip_from_x_forwarded_for(self):
        from apps.accounts.middleware import RateLimitMiddleware

        class MockRequest:
            META = {'HTTP_X_FORWARDED_FOR': '1.2.3.4, 5.6.7.8'}

        middleware = RateLimitMiddleware(lambda r: None)
        self.assertEqual(middleware._get_client_ip(MockRequest()), '1.2.3.4')

    def test_middleware_handles_missing_ip(self):
        from apps.accounts.middleware import RateLimitMiddleware

        class MockRequest:
            META = {}

        middleware = RateLimitMiddleware(lambda r: None)
        self.assertEqual(middleware._get_client_ip(MockRequest()), '0.0.0.0')

    @override_settings(RATE_LIMIT_REQUESTS=2, RATE_LIMIT_WINDOW=60, RATE_LIMIT_PATHS=RATE_LIMITS)
    def test_expired_clients_are_evicted(self):
        from apps.accounts.middleware import RateLimitMiddleware

        class MockRequest:
            method = 'POST'
            path = '/accounts/login/'

            def __init__(self, ip):
                self.META = {'REMOTE_ADDR': ip}

        middleware = RateLimitMiddleware(lambda r: 'ok')

        with patch('apps.accounts.middleware.time.monotonic', return_value=1000.0):
            for ip in ('1.1.1.1', '2.2.2.2', '3.3.3.3'):
                self.assertEqual(middleware(MockRequest(ip)), 'ok')
            self.assertEqual(len(middleware.hits), 3)

        with patch('apps.accounts.middleware.time.monotonic', return_value=1061.0):
            self.assertEqual(middleware(MockRequest('4.4.4.4')), 'ok')

        self.assertEqual(list(middleware.hits), [('/accounts/login/', '4.4.4.4')])

    @override_settings(RATE_LIMIT_REQUESTS=1, RATE_LIMIT_WINDOW=60, RATE_LIMIT_PATHS=RATE_LIMITS)
    def test_retry_after_counts_down(self):
        from apps.accounts.middleware import RateLimitMiddleware

        class MockRequest:
            method = 'POST'
            path = '/accounts/login/'
            META = {'REMOTE_ADDR': '1.1.1.1'}

        middleware = RateLimitMiddleware(lambda r: 'ok')

        with patch('apps.accounts.middleware.time.monotonic', return_value=1000.0):
            middleware(MockRequest())
        with patch('apps.accounts.middleware.time.monotonic', return_value=1045.5):
            response = middleware(MockRequest())

        self.assertEqual(response.status_code, 429)
        self.assertEqual(response['Retry-After'], '15')
