"""
Business storage.

Views never touch the ORM directly: they ask get_business_store() for the
backend selected by settings.BUSINESS_STORE and use its operations.
"""
import logging
import uuid
from typing import Any, Dict, List, Optional

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from django.db import IntegrityError, transaction
from django.utils.translation import gettext as _

from .models import Business, DESCRIPTION_MAX_LENGTH, make_slug

logger = logging.getLogger(__name__)


class BusinessError(Exception):
    """Business validation/storage error with an HTTP status"""
    def __init__(self, message: str, status: int = 400):
        self.message = message
        self.status = status
        super().__init__(message)


class DuplicateSlugError(BusinessError):
    def __init__(self, slug: str):
        self.slug = slug
        super().__init__(_('A business with this name already exists'), 409)


class BusinessNotFound(BusinessError):
    def __init__(self, business_id=None):
        super().__init__(_('Business not found'), 404)


def _text(value) -> str:
    # legacy JSON records may carry numbers where strings are expected
    return '' if value is None else str(value).strip()


def clean_business_data(data: Dict[str, Any]) -> Dict[str, Any]:
    """Validate incoming business fields and derive the slug"""
    name = _text(data.get('name'))
    place_id = _text(data.get('place_id'))

    if not name or not place_id:
        raise BusinessError(_('Name and Google Place ID are required'))

    slug = _text(data.get('slug')) or make_slug(name)
    if not slug:
        raise BusinessError(_('The name must contain at least one letter or digit'))

    return {
        'name': name[:200],
        'slug': slug,
        'place_id': place_id,
        'location': _text(data.get('location')),
        'description': _text(data.get('description')),
        'owner': data.get('owner'),
        'created_at': data.get('created_at'),
    }


def clean_description(text: Optional[str]) -> str:
    text = (text or '').strip()
    if not text:
        raise BusinessError(_('Description cannot be empty'))
    if len(text) > DESCRIPTION_MAX_LENGTH:
        raise BusinessError(
            _('Description must be at most %(max)d characters') % {'max': DESCRIPTION_MAX_LENGTH}
        )
    return text


def parse_business_id(business_id) -> uuid.UUID:
    if isinstance(business_id, uuid.UUID):
        return business_id
    try:
        return uuid.UUID(str(business_id))
    except ValueError:
        raise BusinessNotFound(business_id)


class BaseBusinessStore:
    """Operations shared by every storage backend"""

    def get_all_businesses(self) -> List[Business]:
        raise NotImplementedError

    def get_business(self, business_id) -> Optional[Business]:
        raise NotImplementedError

    def get_business_by_slug(self, slug: str) -> Optional[Business]:
        raise NotImplementedError

    def add_business(self, data: Dict[str, Any]) -> str:
        raise NotImplementedError

    def update_business_description(self, business_id, text: str) -> None:
        raise NotImplementedError

    def delete_business(self, business_id) -> None:
        raise NotImplementedError

    def can_edit_business(self, business_id, user) -> bool:
        """Owners and admins may edit a business"""
        if user is None or not user.is_authenticated:
            return False
        if getattr(user, 'is_admin', False):
            return True
        try:
            business = self.get_business(business_id)
        except BusinessNotFound:
            return False
        if business is None or not business.owner_id:
            return False
        return str(business.owner_id) == str(user.pk)


class DatabaseBusinessStore(BaseBusinessStore):
    """Hosted storage: the Django database"""

    def get_all_businesses(self) -> List[Business]:
        return list(Business.objects.order_by('-created_at'))

    def get_business(self, business_id) -> Optional[Business]:
        return Business.objects.filter(id=parse_business_id(business_id)).first()

    def get_business_by_slug(self, slug: str) -> Optional[Business]:
        return Business.objects.filter(slug=slug).first()

    def add_business(self, data: Dict[str, Any]) -> str:
        fields = clean_business_data(data)
        if Business.objects.filter(slug=fields['slug']).exists():
            raise DuplicateSlugError(fields['slug'])

        created_at = fields.pop('created_at')
        business = Business(**fields)
        if created_at:
            business.created_at = created_at

        try:
            with transaction.atomic():
                business.save()
        except IntegrityError:
            # Lost a race with a concurrent insert of the same slug
            raise DuplicateSlugError(fields['slug'])

        logger.info(f'Added business {business.slug} ({business.id})')
        return str(business.id)

    def update_business_description(self, business_id, text: str) -> None:
        text = clean_description(text)
        updated = Business.objects.filter(id=parse_business_id(business_id)).update(description=text)
        if not updated:
            raise BusinessNotFound(business_id)

    def delete_business(self, business_id) -> None:
        deleted, _count = Business.objects.filter(id=parse_business_id(business_id)).delete()
        if not deleted:
            raise BusinessNotFound(business_id)
        logger.info(f'Deleted business {business_id}')

    def existing_slugs(self) -> set:
        return set(Business.objects.values_list('slug', flat=True))


def get_business_store(backend: Optional[str] = None) -> BaseBusinessStore:
    """Storage backend selected by settings.BUSINESS_STORE ('database' or 'local')"""
    backend = backend or settings.BUSINESS_STORE

    if backend == 'database':
        return DatabaseBusinessStore()
    if backend == 'local':
        from .local_store import LocalBusinessStore
        return LocalBusinessStore(settings.LOCAL_BUSINESS_STORE_PATH)

    raise ImproperlyConfigured(
        f"Unknown BUSINESS_STORE '{backend}'. Use 'database' or 'local'."
    )
