"""
Django settings for reviewpasta project.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Build paths inside the project like this: BASE_DIR / 'subdir'.
BASE_DIR = Path(__file__).resolve().parent.parent

# Load environment variables from .env
load_dotenv(BASE_DIR / '.env')


# SECURITY WARNING: keep the secret key used in production secret!
SECRET_KEY = os.environ.get(
    'DJANGO_SECRET_KEY',
    'django-insecure-r3v13wp4st4-dev-only-0k2m#t8q!x5v@h1n$w7e%c9j',
)

# SECURITY WARNING: don't run with debug turned on in production!
DEBUG = os.environ.get('DJANGO_DEBUG', 'true').lower() in ('1', 'true', 'yes')

ALLOWED_HOSTS = os.environ.get('DJANGO_ALLOWED_HOSTS', '*').split(',')


# Application definition

INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',

    'apps.accounts',
    'apps.businesses',
    'apps.reviews',
    'apps.qr',
    'apps.waitlist',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.locale.LocaleMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
    'apps.accounts.middleware.RateLimitMiddleware',  # Bot protection
]

ROOT_URLCONF = 'reviewpasta.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [BASE_DIR / 'templates'],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.request',
                'django.template.context_processors.i18n',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

WSGI_APPLICATION = 'reviewpasta.wsgi.application'


# Database

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': BASE_DIR / 'db.sqlite3',
    }
}


# Custom User Model
AUTH_USER_MODEL = 'accounts.User'

AUTHENTICATION_BACKENDS = [
    'django.contrib.auth.backends.ModelBackend',
]


# Password validation

AUTH_PASSWORD_VALIDATORS = [
    {
        'NAME': 'django.contrib.auth.password_validation.UserAttributeSimilarityValidator',
    },
    {
        'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator',
    },
    {
        'NAME': 'django.contrib.auth.password_validation.CommonPasswordValidator',
    },
    {
        'NAME': 'django.contrib.auth.password_validation.NumericPasswordValidator',
    },
]


# Internationalization

LANGUAGE_CODE = 'en'

LANGUAGES = [
    ('en', 'English'),
    ('ro', 'Română'),
]

LOCALE_PATHS = [BASE_DIR / 'locale']

TIME_ZONE = 'Europe/Bucharest'

USE_I18N = True

USE_TZ = True


# Static files (CSS, JavaScript, Images)

STATIC_URL = 'static/'

# Media files (saved QR codes)
MEDIA_URL = 'media/'
MEDIA_ROOT = BASE_DIR / 'media'

# Default primary key field type
DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'


# Login settings
LOGIN_URL = '/accounts/login/'
LOGIN_REDIRECT_URL = '/'


# Site URL for review links and QR codes
# Development: http://localhost:8000
SITE_URL = os.environ.get('SITE_URL', 'http://localhost:8000')


# Review drafts (OpenRouter)
# Without a key drafts come from the template catalog only.
OPENROUTER_API_KEY = os.environ.get('OPENROUTER_API_KEY', '')
OPENROUTER_API_URL = os.environ.get(
    'OPENROUTER_API_URL', 'https://openrouter.ai/api/v1/chat/completions'
)
OPENROUTER_MODEL = os.environ.get('OPENROUTER_MODEL', 'openrouter/auto')
AI_DRAFT_TIMEOUT = float(os.environ.get('AI_DRAFT_TIMEOUT', '10'))
AI_DRAFT_TEMPERATURE = float(os.environ.get('AI_DRAFT_TEMPERATURE', '0.7'))
AI_DRAFT_MAX_TOKENS = int(os.environ.get('AI_DRAFT_MAX_TOKENS', '100'))


# Business storage backend: 'database' (hosted) or 'local' (JSON file)
BUSINESS_STORE = os.environ.get('BUSINESS_STORE', 'database')
LOCAL_BUSINESS_STORE_PATH = Path(
    os.environ.get('LOCAL_BUSINESS_STORE_PATH', BASE_DIR / 'local_businesses.json')
)
# Written once the local store has been copied into the database
LOCAL_MIGRATION_MARKER = Path(
    os.environ.get('LOCAL_MIGRATION_MARKER', BASE_DIR / '.local_businesses_migrated')
)


# Rate Limiting (bot protection)
RATE_LIMIT_REQUESTS = int(os.environ.get('RATE_LIMIT_REQUESTS', 5))  # Default max POSTs per window
RATE_LIMIT_WINDOW = int(os.environ.get('RATE_LIMIT_WINDOW', 60))  # Window in seconds
RATE_LIMIT_PATHS = {     # Protected endpoints, None = default limit
    '/signup/': 3,
    '/accounts/login/': None,
}


# Logging Configuration
LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
        },
    },
    'loggers': {
        'apps': {
            'handlers': ['console'],
            'level': 'DEBUG' if DEBUG else 'INFO',
        },
    },
}
