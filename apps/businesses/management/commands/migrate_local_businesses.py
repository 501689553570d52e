"""
Management command: copy businesses from the local JSON store into the database.
Runs once; a marker file makes later runs no-ops unless --force is given.
"""
from django.conf import settings
from django.core.management.base import BaseCommand

from apps.businesses.local_store import LocalBusinessStore
from apps.businesses.migration import migrate_local_businesses, should_run_migration


class Command(BaseCommand):
    help = 'Migrates businesses from the local JSON store into the database'

    def add_arguments(self, parser):
        parser.add_argument(
            '--path',
            type=str,
            default=None,
            help='Path to the local store file (default: LOCAL_BUSINESS_STORE_PATH)'
        )
        parser.add_argument(
            '--force',
            action='store_true',
            help='Run even if the migration has already completed'
        )
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show what would be migrated without writing anything'
        )

    def handle(self, *args, **options):
        source = LocalBusinessStore(options['path'] or settings.LOCAL_BUSINESS_STORE_PATH)
        force = options['force']
        dry_run = options['dry_run']

        self.stdout.write(f'Local store: {source.path}')

        if not force and not should_run_migration(source):
            self.stdout.write('Nothing to migrate (already done or the local store is empty)')
            return

        result = migrate_local_businesses(source=source, force=force, dry_run=dry_run)

        for error in result.errors:
            self.stdout.write(self.style.WARNING(f'  {error}'))

        prefix = '[DRY RUN] ' if dry_run else ''
        style = self.style.SUCCESS if result.success else self.style.ERROR
        self.stdout.write(style(
            f'\n{prefix}Migration finished:\n'
            f'  Migrated: {result.migrated_count}\n'
            f'  Skipped (already in database): {result.skipped_count}\n'
            f'  Errors: {len(result.errors)}'
        ))
