"""
Management command: add the demo businesses to an empty store.
"""
from django.core.management.base import BaseCommand

from apps.businesses.services import BusinessError, get_business_store

DEMO_BUSINESSES = [
    {
        'name': 'The Rock Gym Copou',
        'slug': 'the-rock-gym-copou',
        'place_id': 'ChIJy5STiSj7ykAR4jKYiteg_NQ',
        'location': 'Iași, Romania',
        'description': 'Indoor climbing gym and fitness center',
    },
    {
        'name': 'Scorpions Kick Boxing Iași',
        'slug': 'scorpions-kick-boxing-iasi',
        'place_id': 'ChIJ96NAZC77ykARP_uaR7eKjRs',
        'location': 'Iași, Romania',
        'description': 'Martial arts and kickboxing training center',
    },
]


class Command(BaseCommand):
    help = 'Adds demo businesses when the business store is empty'

    def add_arguments(self, parser):
        parser.add_argument(
            '--store',
            choices=['database', 'local'],
            default=None,
            help='Store to seed (default: BUSINESS_STORE)'
        )

    def handle(self, *args, **options):
        store = get_business_store(options['store'])

        if store.get_all_businesses():
            self.stdout.write('Store already has businesses, nothing to seed')
            return

        for data in DEMO_BUSINESSES:
            try:
                store.add_business(data)
            except BusinessError as e:
                self.stdout.write(self.style.WARNING(f'  {data["name"]}: {e.message}'))
                continue
            self.stdout.write(f'  Added: {data["name"]}')

        self.stdout.write(self.style.SUCCESS('Demo businesses seeded'))
