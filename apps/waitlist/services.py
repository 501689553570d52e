"""Waitlist signup and admin approval logic."""

import logging
import re
from typing import Dict, Optional, Tuple

from django.db import IntegrityError, transaction
from django.db.models import Count, Q
from django.utils.translation import gettext as _

from apps.accounts.services.magic_link import build_magic_link, get_or_create_user
from .models import WaitlistEntry

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')
PHONE_RE = re.compile(r'^[\d\s\+\-\(\)]+$')
PHONE_MIN_LENGTH = 8

REQUIRED_FIELDS = (
    'email', 'phone_number', 'name', 'business_name', 'business_description', 'business_url',
)


class WaitlistError(Exception):
    """Waitlist validation error with an HTTP status"""
    def __init__(self, message: str, status: int = 400):
        self.message = message
        self.status = status
        super().__init__(message)


class AlreadyOnWaitlist(WaitlistError):
    def __init__(self):
        super().__init__(_('This email is already on the waitlist'), 409)


def clean_signup_data(data: Dict[str, str]) -> Dict[str, str]:
    cleaned = {field: (data.get(field) or '').strip() for field in REQUIRED_FIELDS}

    if not all(cleaned.values()):
        raise WaitlistError(_('Please fill in all required fields'))

    if not EMAIL_RE.match(cleaned['email']):
        raise WaitlistError(_('Please enter a valid email address'))

    phone = cleaned['phone_number']
    if not PHONE_RE.match(phone) or len(phone) < PHONE_MIN_LENGTH:
        raise WaitlistError(_('Please enter a valid phone number'))

    cleaned['email'] = cleaned['email'].lower()
    cleaned['message'] = (data.get('message') or '').strip()
    return cleaned


def join_waitlist(data: Dict[str, str]) -> WaitlistEntry:
    """
    Validate a signup and store it as a pending entry.

    Raises:
        WaitlistError: invalid input
        AlreadyOnWaitlist: email already signed up
    """
    cleaned = clean_signup_data(data)

    if WaitlistEntry.objects.filter(email=cleaned['email']).exists():
        raise AlreadyOnWaitlist()

    try:
        with transaction.atomic():
            entry = WaitlistEntry.objects.create(**cleaned)
    except IntegrityError:
        raise AlreadyOnWaitlist()

    logger.info(f'Waitlist signup: {entry.email} ({entry.business_name})')
    return entry


def list_entries(status: Optional[str] = None, query: str = ''):
    """Entries newest first, optionally by status and a search over email/name/business"""
    entries = WaitlistEntry.objects.all()

    if status and status != 'all':
        entries = entries.filter(status=status)

    query = (query or '').strip()
    if query:
        entries = entries.filter(
            Q(email__icontains=query) |
            Q(name__icontains=query) |
            Q(business_name__icontains=query)
        )
    return entries


def status_counts() -> Dict[str, int]:
    counts = {'total': 0}
    counts.update({status: 0 for status in WaitlistEntry.Status.values})
    for row in WaitlistEntry.objects.values('status').annotate(n=Count('id')):
        counts[row['status']] = row['n']
        counts['total'] += row['n']
    return counts


def approve_entry(entry: WaitlistEntry, base_url: Optional[str] = None) -> Tuple[WaitlistEntry, str]:
    """
    Approve an entry and issue a one-time sign-in link.

    Creates the user when the email has no account yet. Approving an
    already approved entry issues a fresh link.

    Returns:
        Tuple of (entry, magic link URL)
    """
    user, created = get_or_create_user(entry.email, entry.name)
    link = build_magic_link(user, base_url)

    if entry.status != WaitlistEntry.Status.APPROVED:
        entry.status = WaitlistEntry.Status.APPROVED
        entry.save(update_fields=['status', 'updated_at'])

    logger.info(f'Waitlist entry {entry.email} approved (new user: {created})')
    return entry, link


def set_status(entry: WaitlistEntry, status: str) -> WaitlistEntry:
    if status not in WaitlistEntry.Status.values:
        raise WaitlistError(f'Unknown status: {status}')
    entry.status = status
    entry.save(update_fields=['status', 'updated_at'])
    logger.info(f'Waitlist entry {entry.email} set to {status}')
    return entry
