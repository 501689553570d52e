"""One-time sign-in links for waitlist-approved users."""

import logging
from typing import Optional, Tuple

from django.conf import settings
from django.contrib.auth import get_user_model
from django.contrib.auth.tokens import default_token_generator
from django.core.exceptions import ValidationError
from django.urls import reverse
from django.utils.encoding import force_bytes
from django.utils.http import urlsafe_base64_decode, urlsafe_base64_encode

logger = logging.getLogger(__name__)

User = get_user_model()


def get_or_create_user(email: str, name: str = '') -> Tuple[User, bool]:
    """
    Find the user for an email or create a passwordless one.

    Returns:
        Tuple of (User, created)
    """
    email = email.strip().lower()
    user = User.objects.filter(email=email).first()
    if user:
        return user, False

    user = User.objects.create_user(email=email, first_name=name[:100])
    logger.info(f'Created user {email} from waitlist approval')
    return user, True


def build_magic_link(user: User, base_url: Optional[str] = None) -> str:
    """
    Build an absolute one-time sign-in URL for the user.

    The token is Django's password-reset token: it stops validating once the
    user logs in, because last_login is part of its hash.
    """
    base_url = (base_url or settings.SITE_URL).rstrip('/')
    uidb64 = urlsafe_base64_encode(force_bytes(user.pk))
    token = default_token_generator.make_token(user)
    path = reverse('accounts:magic_login', kwargs={'uidb64': uidb64, 'token': token})
    return f'{base_url}{path}'


def resolve_magic_link(uidb64: str, token: str) -> Optional[User]:
    """Return the user a valid link belongs to, or None."""
    try:
        user_id = urlsafe_base64_decode(uidb64).decode()
        user = User.objects.get(pk=user_id)
    except (TypeError, ValueError, OverflowError, ValidationError, User.DoesNotExist):
        return None

    if not user.is_active or not default_token_generator.check_token(user, token):
        return None
    return user
