import logging

from django.db import DatabaseError, transaction

from .exceptions import NotFoundError, PersistenceError, SearchIndexError
from .opening_hours import validate_opening_hours
from .pagination import PageRequest
from .query_router import route_shop_query
from .repository import ProductRepository, ShopRepository
from .search_client import SearchIndexClient
from .transformer import transform_product, transform_shop

logger = logging.getLogger(__name__)


class ShopService:
    """
    Writes shops to the relational store first, then mirrors the committed
    row into the search index.

    The relational store is the source of truth: a failed index write is
    logged and the relational write stands.
    """

    def __init__(self, repository=None, search_client=None):
        self._repository = repository or ShopRepository()
        self._search = search_client or SearchIndexClient()

    def create_shop(self, payload: dict):
        """
        Validate and persist a shop, then index it.

        A payload carrying an ``id`` overwrites that shop, like any insert-or-
        update by id.
        """
        shop_data = transform_shop(payload)
        validate_opening_hours(shop_data['opening_hours'])

        shop = self._repository.save(shop_data['fields'], shop_data['opening_hours'], shop_id=shop_data['id'])
        logger.info("Shop %s saved.", shop.pk)
        self._mirror(shop)
        return shop

    def update_shop(self, payload: dict):
        """Overwrite an existing shop. The full entity is required, this is not a patch."""
        shop_data = transform_shop(payload, require_id=True)
        shop_id = shop_data['id']
        if not self._repository.exists(shop_id):
            raise NotFoundError('Shop', shop_id)
        validate_opening_hours(shop_data['opening_hours'])

        shop = self._repository.save(shop_data['fields'], shop_data['opening_hours'], shop_id=shop_id)
        logger.info("Shop %s updated.", shop.pk)
        self._mirror(shop)
        return shop

    def delete_shop(self, shop_id) -> None:
        """Detach the shop's products, delete the shop, then drop its index document."""
        shop = self.get_shop(shop_id)
        try:
            with transaction.atomic():
                detached = self._repository.detach_products(shop)
                self._repository.delete_by_id(shop.pk)
        except DatabaseError as exc:
            raise PersistenceError(str(exc)) from exc
        logger.info("Shop %s deleted, %d products detached.", shop_id, detached)

        try:
            self._search.delete(shop_id)
        except SearchIndexError as exc:
            logger.warning("Shop %s deleted but its index document was not removed: %s", shop_id, exc)

    def get_shop(self, shop_id):
        shop = self._repository.find_by_id(shop_id)
        if shop is None:
            raise NotFoundError('Shop', shop_id)
        return shop

    def list_shops(self, name=None, sort_by=None, in_vacations=None,
                   created_after=None, created_before=None, page_request: PageRequest = None):
        return route_shop_query(
            self._repository,
            self._search,
            page_request=page_request,
            name=name,
            sort_by=sort_by,
            in_vacations=in_vacations,
            created_after=created_after,
            created_before=created_before,
        )

    def sync_existing_shop(self, shop):
        """Index an already persisted shop without writing to the relational store."""
        self._search.save(shop)
        return shop

    def _mirror(self, shop) -> bool:
        try:
            self._search.save(shop)
        except SearchIndexError as exc:
            logger.warning("Shop %s persisted but not indexed, index is out of date: %s", shop.pk, exc)
            return False
        return True


class ProductService:
    """
    CRUD over products. Products are not indexed themselves, but the shops
    they join or leave are re-indexed so their product count stays current.
    """

    def __init__(self, repository=None, shop_repository=None, search_client=None):
        self._repository = repository or ProductRepository()
        self._shops = shop_repository or ShopRepository()
        self._search = search_client or SearchIndexClient()

    def create_product(self, payload: dict):
        product_data = transform_product(payload)
        self._check_references(product_data)
        product = self._save(product_data)
        logger.info("Product %s saved.", product.pk)
        self._reindex_shops(product.shop_id)
        return product

    def update_product(self, payload: dict):
        product_data = transform_product(payload, require_id=True)
        previous = self._repository.find_by_id(product_data['id'])
        if previous is None:
            raise NotFoundError('Product', product_data['id'])
        self._check_references(product_data)
        product = self._save(product_data)
        logger.info("Product %s updated.", product.pk)
        self._reindex_shops(previous.shop_id, product.shop_id)
        return product

    def delete_product(self, product_id) -> None:
        product = self.get_product(product_id)
        self._repository.delete_by_id(product.pk)
        logger.info("Product %s deleted.", product_id)
        self._reindex_shops(product.shop_id)

    def get_product(self, product_id):
        product = self._repository.find_by_id(product_id)
        if product is None:
            raise NotFoundError('Product', product_id)
        return product

    def list_products(self, shop_id=None, category_id=None, page_request: PageRequest = None):
        return self._repository.find_page(
            page_request or PageRequest(), shop_id=shop_id, category_id=category_id,
        )

    def _save(self, product_data):
        return self._repository.save(
            product_data['fields'],
            shop_id=product_data['shop_id'],
            category_id=product_data['category_id'],
            product_id=product_data['id'],
        )

    def _check_references(self, product_data):
        shop_id = product_data['shop_id']
        if shop_id is not None and not self._shops.exists(shop_id):
            raise NotFoundError('Shop', shop_id)
        category_id = product_data['category_id']
        if category_id is not None and not self._repository.category_exists(category_id):
            raise NotFoundError('Category', category_id)

    def _reindex_shops(self, *shop_ids):
        for shop_id in sorted({shop_id for shop_id in shop_ids if shop_id is not None}):
            shop = self._shops.find_by_id(shop_id)
            if shop is None:
                continue
            try:
                self._search.save(shop)
            except SearchIndexError as exc:
                logger.warning("Shop %s not re-indexed after a product change, index is out of date: %s",
                               shop_id, exc)
