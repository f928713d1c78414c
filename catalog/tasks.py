import logging

from celery import shared_task
from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

from .models import SyncTracker
from .pagination import PageRequest
from .services import ShopService
from .transformer import shop_to_payload

logger = logging.getLogger(__name__)

LATCH_KEY = 'shop_index'


def _strategy(service: ShopService, name: str):
    if name == 'sync':
        return service.sync_existing_shop
    if name == 'create':
        return lambda shop: service.create_shop(shop_to_payload(shop))
    raise ImproperlyConfigured(
        f"SEARCH_INDEX_BACKFILL_STRATEGY must be 'sync' or 'create', got {name!r}"
    )


def is_backfill_done() -> bool:
    return SyncTracker.objects.filter(key=LATCH_KEY, sync_completed=True).exists()


@shared_task(bind=True, name='catalog.backfill_search_index')
def backfill_search_index(self, strategy=None):
    """
    Copy every existing shop into the search index, once per deployment.

    Steps:
      1. Stop if the SyncTracker latch is already set.
      2. Load all shops, unpaged, through the unfiltered listing.
      3. Index each shop with the configured strategy ('sync' or 'create').
         A failing shop is logged and the backfill moves on.
      4. Set the latch so later runs are no-ops.

    A crash before step 4 means the next run starts over. Indexing a shop
    twice overwrites its document, so that is safe.
    """
    if is_backfill_done():
        logger.info("Search index backfill already completed – skipping.")
        return {'indexed': 0, 'errors': 0, 'skipped': True}

    strategy = strategy or settings.SEARCH_INDEX_BACKFILL_STRATEGY
    service = ShopService()
    index_shop = _strategy(service, strategy)

    shops = service.list_shops(page_request=PageRequest.unpaged())
    logger.info("Starting search index backfill of %d shops (strategy=%s).", shops.total, strategy)

    indexed = errors = 0
    for shop in shops:
        try:
            index_shop(shop)
            indexed += 1
        except Exception as exc:
            errors += 1
            logger.error("Failed to index shop %s: %s", shop.pk, exc, exc_info=True)

    SyncTracker.objects.update_or_create(key=LATCH_KEY, defaults={'sync_completed': True})
    logger.info("Search index backfill complete. indexed=%d, errors=%d.", indexed, errors)
    return {'indexed': indexed, 'errors': errors, 'skipped': False}
