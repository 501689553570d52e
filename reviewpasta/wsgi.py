"""WSGI config for reviewpasta project."""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'reviewpasta.settings')

application = get_wsgi_application()
