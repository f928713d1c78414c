"""
Decides which store answers a shop listing query.

Rules are evaluated top-down and the first matching one wins:

    sort  >  name search  >  relational filters  >  unfiltered listing

Exact and range filters go to the relational store. Substring search on the
name is only possible on the search index.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional

from .exceptions import ValidationError
from .pagination import PageRequest
from .transformer import parse_date

logger = logging.getLogger(__name__)

SEARCH_DEFAULT_AFTER = date(1970, 1, 1)
SEARCH_DEFAULT_BEFORE = date(2060, 1, 1)  # epoch + 90 years


@dataclass(frozen=True)
class ShopQuery:
    name: Optional[str] = None
    sort_by: Optional[str] = None
    in_vacations: Optional[bool] = None
    created_after: Optional[date] = None
    created_before: Optional[date] = None

    @classmethod
    def build(cls, name=None, sort_by=None, in_vacations=None, created_after=None, created_before=None):
        """Parse date strings and treat empty strings as absent."""
        if in_vacations == '':
            in_vacations = None
        if in_vacations is not None and not isinstance(in_vacations, bool):
            raise ValidationError(f"in_vacations must be a boolean, got {in_vacations!r}")
        return cls(
            name=name or None,
            sort_by=sort_by or None,
            in_vacations=in_vacations,
            created_after=parse_date(created_after, 'created_after'),
            created_before=parse_date(created_before, 'created_before'),
        )

    @property
    def has_vacations(self):
        return self.in_vacations is not None

    @property
    def has_after(self):
        return self.created_after is not None

    @property
    def has_before(self):
        return self.created_before is not None


def _sorted(repository, search, q, page_request):
    if q.sort_by == 'name':
        return repository.find_all_order_by_name(page_request)
    if q.sort_by == 'createdAt':
        return repository.find_all_order_by_created_at(page_request)
    return repository.find_all_order_by_nb_products(page_request)


def _name_search(repository, search, q, page_request):
    return search.search_by_name_and_range(
        q.name,
        q.created_after or SEARCH_DEFAULT_AFTER,
        q.created_before or SEARCH_DEFAULT_BEFORE,
        q.in_vacations if q.in_vacations is not None else False,
        page_request,
    )


RULES = [
    ('sorted', lambda q: q.sort_by is not None, _sorted),
    ('name_search', lambda q: q.name is not None, _name_search),
    ('vacations_created_between',
     lambda q: q.has_vacations and q.has_after and q.has_before,
     lambda r, s, q, p: r.find_by_in_vacations_and_created_between(
         q.in_vacations, q.created_after, q.created_before, p)),
    ('vacations_created_before',
     lambda q: q.has_vacations and q.has_before,
     lambda r, s, q, p: r.find_by_in_vacations_and_created_before(q.in_vacations, q.created_before, p)),
    ('vacations_created_after',
     lambda q: q.has_vacations and q.has_after,
     lambda r, s, q, p: r.find_by_in_vacations_and_created_after(q.in_vacations, q.created_after, p)),
    ('created_between',
     lambda q: q.has_after and q.has_before,
     lambda r, s, q, p: r.find_by_created_between(q.created_after, q.created_before, p)),
    ('created_after',
     lambda q: q.has_after,
     lambda r, s, q, p: r.find_by_created_after(q.created_after, p)),
    ('vacations',
     lambda q: q.has_vacations,
     lambda r, s, q, p: r.find_by_in_vacations(q.in_vacations, p)),
    # Known gap: a lone created_before has no rule of its own and lands here.
    ('unfiltered',
     lambda q: True,
     lambda r, s, q, p: r.find_all_order_by_id(p)),
]


def select_rule(query: ShopQuery):
    """Return ``(name, handler)`` of the first rule matching ``query``."""
    for name, predicate, handler in RULES:
        if predicate(query):
            return name, handler
    raise LookupError('no routing rule matched')  # unreachable, 'unfiltered' always matches


def route_shop_query(repository, search, page_request: PageRequest = None, **filters):
    """
    Answer a shop listing query from the relational repository or the search index.

    ``filters`` are name, sort_by, in_vacations, created_after and
    created_before. Dates may be ``date`` objects or ISO strings.
    """
    if page_request is None:
        page_request = PageRequest()
    query = ShopQuery.build(**filters)
    rule_name, handler = select_rule(query)
    logger.debug("Routing shop query %s via rule %r.", query, rule_name)
    return handler(repository, search, query, page_request)
