import os

from django.conf import settings
from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings')

application = get_wsgi_application()

if settings.SEARCH_INDEX_BACKFILL_ON_STARTUP:
    # Runs before the server hands the application any request.
    from catalog.startup import prepare_search_index

    prepare_search_index()
