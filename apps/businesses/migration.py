"""
One-time copy of businesses from the local JSON store into the database.

The marker file records that the copy has happened, so later runs are no-ops
unless forced. Records whose slug already exists in the database are skipped;
a failing record is reported and does not stop the rest.
"""
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from django.conf import settings
from django.utils import timezone

from .local_store import LocalBusinessStore, parse_timestamp
from .services import BusinessError, DatabaseBusinessStore

logger = logging.getLogger(__name__)


@dataclass
class MigrationResult:
    success: bool
    migrated_count: int = 0
    errors: List[str] = field(default_factory=list)
    skipped_count: int = 0


def _marker_path(marker=None) -> Path:
    return Path(marker or settings.LOCAL_MIGRATION_MARKER)


def should_run_migration(source: Optional[LocalBusinessStore] = None, marker=None) -> bool:
    """True when the marker is absent and the local store has records"""
    if _marker_path(marker).exists():
        return False
    source = source or LocalBusinessStore(settings.LOCAL_BUSINESS_STORE_PATH)
    return source.count() > 0


def mark_migration_complete(marker=None) -> None:
    path = _marker_path(marker)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(timezone.now().isoformat() + '\n', encoding='utf-8')


def reset_migration(marker=None) -> None:
    """Forget that the migration ran (testing and re-imports)"""
    _marker_path(marker).unlink(missing_ok=True)


def migrate_local_businesses(
    source: Optional[LocalBusinessStore] = None,
    target: Optional[DatabaseBusinessStore] = None,
    marker=None,
    force: bool = False,
    dry_run: bool = False,
) -> MigrationResult:
    source = source or LocalBusinessStore(settings.LOCAL_BUSINESS_STORE_PATH)
    target = target or DatabaseBusinessStore()

    if not force and _marker_path(marker).exists():
        logger.info('Local business migration already completed, skipping')
        return MigrationResult(success=True)

    try:
        records = source.load_records()
    except (OSError, ValueError) as e:
        logger.error(f'Cannot read local business store {source.path}: {e}')
        return MigrationResult(success=False, errors=[f'Cannot read local store: {e}'])

    result = MigrationResult(success=True)

    if not records:
        if not dry_run:
            mark_migration_complete(marker)
        return result

    existing = target.existing_slugs()

    for record in records:
        name = str(record.get('name') or '(unnamed)')
        slug = str(record.get('slug') or '').strip()

        if slug and slug in existing:
            result.skipped_count += 1
            continue

        if dry_run:
            result.migrated_count += 1
            continue

        try:
            target.add_business({
                'name': record.get('name'),
                'slug': slug,
                'place_id': record.get('place_id'),
                'location': record.get('location'),
                'description': record.get('description'),
                'created_at': parse_timestamp(record.get('created_at')),
            })
        except BusinessError as e:
            logger.error(f'Failed to migrate business {name}: {e.message}')
            result.errors.append(f'{name}: {e.message}')
            continue
        except Exception as e:
            logger.exception(f'Failed to migrate business {name}')
            result.errors.append(f'{name}: {e}')
            continue

        result.migrated_count += 1
        if slug:
            existing.add(slug)

    result.success = not result.errors

    if not dry_run:
        mark_migration_complete(marker)

    logger.info(
        f'Local business migration: {result.migrated_count} migrated, '
        f'{result.skipped_count} skipped, {len(result.errors)} failed'
    )
    return result
