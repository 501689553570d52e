"""
Local business storage: a JSON file on disk.

This is the store the app ran on before the hosted database existed. Records
are plain dicts (see Business.to_record); reads return unsaved Business
instances so templates and views treat both backends the same way.
"""
import json
import logging
import uuid
from datetime import datetime, timezone as dt_timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from dateutil import parser as date_parser
from django.utils import timezone

from .models import Business
from .services import (
    BaseBusinessStore,
    BusinessNotFound,
    DuplicateSlugError,
    clean_business_data,
    clean_description,
    parse_business_id,
)

logger = logging.getLogger(__name__)


def parse_timestamp(value) -> Optional[datetime]:
    """ISO string (or datetime) -> aware datetime; None when missing or unparsable"""
    if not value:
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        try:
            dt = date_parser.isoparse(str(value))
        except (ValueError, OverflowError):
            logger.warning(f'Unparsable timestamp in local store: {value!r}')
            return None
    if timezone.is_naive(dt):
        dt = timezone.make_aware(dt, dt_timezone.utc)
    return dt


class LocalBusinessStore(BaseBusinessStore):
    """File-backed store with the same operations as the database store"""

    def __init__(self, path):
        self.path = Path(path)

    def load_records(self) -> List[Dict[str, Any]]:
        if not self.path.exists():
            return []
        raw = self.path.read_text(encoding='utf-8')
        if not raw.strip():
            return []
        data = json.loads(raw)
        # Exports of the old client-side store wrap records in {"businesses": [...]}
        if isinstance(data, dict):
            data = data.get('businesses', [])
        return [record for record in data if isinstance(record, dict)]

    def _save_records(self, records: List[Dict[str, Any]]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(
            json.dumps(records, ensure_ascii=False, indent=2) + '\n',
            encoding='utf-8',
        )

    @staticmethod
    def to_business(record: Dict[str, Any]) -> Business:
        business = Business(
            name=record.get('name') or '',
            slug=record.get('slug') or '',
            place_id=record.get('place_id') or '',
            location=record.get('location') or '',
            description=record.get('description') or '',
        )
        if record.get('id'):
            try:
                business.id = uuid.UUID(str(record['id']))
            except ValueError:
                # Old client-side ids were auto-increment integers
                business.id = uuid.uuid5(uuid.NAMESPACE_URL, f'local-business:{record["id"]}')
        if record.get('owner_id'):
            business.owner_id = uuid.UUID(str(record['owner_id']))
        business.created_at = parse_timestamp(record.get('created_at'))
        return business

    def count(self) -> int:
        return len(self.load_records())

    def get_all_businesses(self) -> List[Business]:
        businesses = [self.to_business(r) for r in self.load_records()]
        oldest = datetime(1970, 1, 1, tzinfo=dt_timezone.utc)
        return sorted(businesses, key=lambda b: b.created_at or oldest, reverse=True)

    def get_business(self, business_id) -> Optional[Business]:
        wanted = parse_business_id(business_id)
        for business in self.get_all_businesses():
            if business.id == wanted:
                return business
        return None

    def get_business_by_slug(self, slug: str) -> Optional[Business]:
        for record in self.load_records():
            if record.get('slug') == slug:
                return self.to_business(record)
        return None

    def add_business(self, data: Dict[str, Any]) -> str:
        fields = clean_business_data(data)
        records = self.load_records()
        if any(r.get('slug') == fields['slug'] for r in records):
            raise DuplicateSlugError(fields['slug'])

        owner = fields.pop('owner')
        created_at = fields.pop('created_at') or timezone.now()
        business = Business(**fields, created_at=created_at)
        if owner is not None:
            business.owner_id = owner.pk

        records.append(business.to_record())
        self._save_records(records)
        logger.info(f'Added business {business.slug} to local store {self.path}')
        return str(business.id)

    def update_business_description(self, business_id, text: str) -> None:
        text = clean_description(text)
        records = self.load_records()
        index = self._find_index(records, business_id)
        records[index]['description'] = text
        self._save_records(records)

    def delete_business(self, business_id) -> None:
        records = self.load_records()
        index = self._find_index(records, business_id)
        del records[index]
        self._save_records(records)
        logger.info(f'Deleted business {business_id} from local store')

    def _find_index(self, records: List[Dict[str, Any]], business_id) -> int:
        wanted = parse_business_id(business_id)
        for index, record in enumerate(records):
            if self.to_business(record).id == wanted:
                return index
        raise BusinessNotFound(business_id)
