import logging

from django.db import DatabaseError

from .exceptions import SearchIndexError
from .search_client import SearchIndexClient
from .tasks import backfill_search_index

logger = logging.getLogger(__name__)


def prepare_search_index():
    """
    Create the shop index if needed and run the one-time backfill inline.

    Never raises: a failure is logged and the application starts anyway.
    """
    try:
        SearchIndexClient().ensure_index()
    except SearchIndexError as exc:
        logger.error("Search index unavailable at startup, skipping backfill: %s", exc)
        return None

    try:
        return backfill_search_index()
    except DatabaseError as exc:
        logger.error("Database unavailable at startup, search index backfill not run: %s", exc)
        return None
