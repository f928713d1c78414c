import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent


def env_bool(name, default=False):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


SECRET_KEY = os.environ.get('DJANGO_SECRET_KEY', 'insecure-dev-key-change-me')
DEBUG = env_bool('DJANGO_DEBUG', False)
ALLOWED_HOSTS = os.environ.get('DJANGO_ALLOWED_HOSTS', 'localhost,127.0.0.1').split(',')

INSTALLED_APPS = [
    'django.contrib.contenttypes',
    'django.contrib.auth',
    'catalog',
]

ROOT_URLCONF = 'config.urls'
WSGI_APPLICATION = 'config.wsgi.application'

DATABASES = {
    'default': {
        'ENGINE': os.environ.get('DATABASE_ENGINE', 'django.db.backends.sqlite3'),
        'NAME': os.environ.get('DATABASE_NAME', str(BASE_DIR / 'db.sqlite3')),
        'USER': os.environ.get('DATABASE_USER', ''),
        'PASSWORD': os.environ.get('DATABASE_PASSWORD', ''),
        'HOST': os.environ.get('DATABASE_HOST', ''),
        'PORT': os.environ.get('DATABASE_PORT', ''),
    }
}

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'
USE_TZ = True
TIME_ZONE = os.environ.get('TIME_ZONE', 'UTC')

# Search index (Elasticsearch)
SEARCH_INDEX_URL = os.environ.get('SEARCH_INDEX_URL', 'http://localhost:9200')
SEARCH_INDEX_NAME = os.environ.get('SEARCH_INDEX_NAME', 'shops')
SEARCH_INDEX_TIMEOUT = float(os.environ.get('SEARCH_INDEX_TIMEOUT', '5'))
SEARCH_INDEX_API_KEY = os.environ.get('SEARCH_INDEX_API_KEY') or None
SEARCH_INDEX_BACKFILL_ON_STARTUP = env_bool('SEARCH_INDEX_BACKFILL_ON_STARTUP', True)
SEARCH_INDEX_BACKFILL_STRATEGY = os.environ.get('SEARCH_INDEX_BACKFILL_STRATEGY', 'sync')

# Celery
CELERY_BROKER_URL = os.environ.get('CELERY_BROKER_URL', 'redis://localhost:6379/0')
CELERY_TASK_ALWAYS_EAGER = env_bool('CELERY_TASK_ALWAYS_EAGER', False)

LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'default': {'format': '%(asctime)s %(levelname)s %(name)s: %(message)s'},
    },
    'handlers': {
        'console': {'class': 'logging.StreamHandler', 'formatter': 'default'},
    },
    'loggers': {
        'catalog': {'level': LOG_LEVEL},
    },
    'root': {'handlers': ['console'], 'level': 'WARNING'},
}
