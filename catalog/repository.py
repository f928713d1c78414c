import functools
import logging

from django.db import DatabaseError, transaction
from django.db.models import Count

from .exceptions import PersistenceError
from .models import Category, OpeningHoursShop, Product, Shop
from .pagination import PageRequest, paginate

logger = logging.getLogger(__name__)


def _wrap_database_errors(method):
    """Re-raise Django database errors as PersistenceError, keeping the cause."""
    @functools.wraps(method)
    def wrapper(*args, **kwargs):
        try:
            return method(*args, **kwargs)
        except DatabaseError as exc:
            raise PersistenceError(str(exc)) from exc
    return wrapper


class ShopRepository:
    """
    Canonical storage for shops and their opening hours.

    Every read goes through an annotated queryset, so returned shops carry
    ``nb_products`` and can be sorted on it.
    """

    def _queryset(self):
        return (
            Shop.objects
            .annotate(nb_products=Count('products', distinct=True))
            .prefetch_related('opening_hours')
        )

    # ------------------------------------------------------------------
    # Single-record operations
    # ------------------------------------------------------------------

    @_wrap_database_errors
    def save(self, fields: dict, opening_hours, shop_id=None) -> Shop:
        """
        Insert a shop (``shop_id`` is None) or overwrite an existing one.

        The row and its full opening-hours collection are replaced in one
        transaction. The returned shop is re-read from the database so
        generated values (id, defaults, product count) are populated.
        """
        with transaction.atomic():
            if shop_id is None:
                shop = Shop.objects.create(**fields)
            else:
                shop = Shop(pk=shop_id, **fields)
                shop.save(force_update=True)
                shop.opening_hours.all().delete()

            OpeningHoursShop.objects.bulk_create([
                OpeningHoursShop(shop=shop, day=oh.day, open_at=oh.open_at, close_at=oh.close_at)
                for oh in opening_hours
            ])

        logger.debug("Shop %s saved with %d opening hours entries.", shop.pk, len(opening_hours))
        return self._queryset().get(pk=shop.pk)

    @_wrap_database_errors
    def find_by_id(self, shop_id):
        return self._queryset().filter(pk=shop_id).first()

    @_wrap_database_errors
    def exists(self, shop_id) -> bool:
        return Shop.objects.filter(pk=shop_id).exists()

    @_wrap_database_errors
    def detach_products(self, shop) -> int:
        return Product.objects.filter(shop=shop).update(shop=None)

    @_wrap_database_errors
    def delete_by_id(self, shop_id) -> None:
        Shop.objects.filter(pk=shop_id).delete()

    # ------------------------------------------------------------------
    # Ordered listings
    # ------------------------------------------------------------------

    @_wrap_database_errors
    def find_all_order_by_id(self, page_request: PageRequest):
        return paginate(self._queryset().order_by('id'), page_request)

    @_wrap_database_errors
    def find_all_order_by_name(self, page_request: PageRequest):
        return paginate(self._queryset().order_by('name', 'id'), page_request)

    @_wrap_database_errors
    def find_all_order_by_created_at(self, page_request: PageRequest):
        return paginate(self._queryset().order_by('created_at', 'id'), page_request)

    @_wrap_database_errors
    def find_all_order_by_nb_products(self, page_request: PageRequest):
        return paginate(self._queryset().order_by('nb_products', 'id'), page_request)

    # ------------------------------------------------------------------
    # Filtered listings (ordered by id)
    # ------------------------------------------------------------------

    def _filtered(self, page_request: PageRequest, **lookups):
        return paginate(self._queryset().filter(**lookups).order_by('id'), page_request)

    @_wrap_database_errors
    def find_by_in_vacations(self, in_vacations, page_request):
        return self._filtered(page_request, in_vacations=in_vacations)

    @_wrap_database_errors
    def find_by_created_after(self, after, page_request):
        return self._filtered(page_request, created_at__gt=after)

    @_wrap_database_errors
    def find_by_created_before(self, before, page_request):
        return self._filtered(page_request, created_at__lt=before)

    @_wrap_database_errors
    def find_by_in_vacations_and_created_after(self, in_vacations, after, page_request):
        return self._filtered(page_request, in_vacations=in_vacations, created_at__gt=after)

    @_wrap_database_errors
    def find_by_in_vacations_and_created_before(self, in_vacations, before, page_request):
        return self._filtered(page_request, in_vacations=in_vacations, created_at__lt=before)

    @_wrap_database_errors
    def find_by_created_between(self, after, before, page_request):
        # Inclusive on both ends, unlike the strict vacation combinations.
        return self._filtered(page_request, created_at__range=(after, before))

    @_wrap_database_errors
    def find_by_in_vacations_and_created_between(self, in_vacations, after, before, page_request):
        return self._filtered(
            page_request, in_vacations=in_vacations, created_at__gt=after, created_at__lt=before,
        )


class ProductRepository:

    def _queryset(self):
        return Product.objects.select_related('shop', 'category')

    @_wrap_database_errors
    def save(self, fields: dict, shop_id=None, category_id=None, product_id=None) -> Product:
        with transaction.atomic():
            if product_id is None:
                product = Product.objects.create(shop_id=shop_id, category_id=category_id, **fields)
            else:
                product = Product(pk=product_id, shop_id=shop_id, category_id=category_id, **fields)
                product.save(force_update=True)
        return self._queryset().get(pk=product.pk)

    @_wrap_database_errors
    def find_by_id(self, product_id):
        return self._queryset().filter(pk=product_id).first()

    @_wrap_database_errors
    def exists(self, product_id) -> bool:
        return Product.objects.filter(pk=product_id).exists()

    @_wrap_database_errors
    def category_exists(self, category_id) -> bool:
        return Category.objects.filter(pk=category_id).exists()

    @_wrap_database_errors
    def delete_by_id(self, product_id) -> None:
        Product.objects.filter(pk=product_id).delete()

    @_wrap_database_errors
    def find_page(self, page_request: PageRequest, shop_id=None, category_id=None):
        queryset = self._queryset()
        if shop_id is not None:
            queryset = queryset.filter(shop_id=shop_id)
        if category_id is not None:
            queryset = queryset.filter(category_id=category_id)
        return paginate(queryset.order_by('id'), page_request)
