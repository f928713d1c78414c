import logging

import requests
from django.conf import settings

from .exceptions import SearchIndexError
from .pagination import Page, PageRequest
from .transformer import document_to_shop, shop_to_document

logger = logging.getLogger(__name__)

# Elasticsearch refuses from + size beyond this window by default.
MAX_RESULT_WINDOW = 10000

SHOP_MAPPINGS = {
    'properties': {
        'id': {'type': 'long'},
        'name': {'type': 'keyword'},
        'created_at': {'type': 'date', 'format': 'yyyy-MM-dd'},
        'in_vacations': {'type': 'boolean'},
        'nb_products': {'type': 'integer'},
        'opening_hours': {
            'properties': {
                'day': {'type': 'short'},
                'open_at': {'type': 'keyword'},
                'close_at': {'type': 'keyword'},
            },
        },
    },
}


class SearchIndexClient:
    """
    Shop mirror stored in an Elasticsearch index, spoken to over its REST API.

    Writes are not transactional and a saved document is not guaranteed to be
    visible to the very next search. Requests are never retried.
    """

    def __init__(self):
        self._base_url = settings.SEARCH_INDEX_URL.rstrip('/')
        self._index = settings.SEARCH_INDEX_NAME
        self._timeout = settings.SEARCH_INDEX_TIMEOUT
        self._session = requests.Session()
        self._session.headers.update({'Content-Type': 'application/json'})
        api_key = getattr(settings, 'SEARCH_INDEX_API_KEY', None)
        if api_key:
            self._session.headers.update({'Authorization': f'ApiKey {api_key}'})

    def ensure_index(self) -> bool:
        """Create the index if missing. Returns True when it was created."""
        url = f"{self._base_url}/{self._index}"
        response = self._request('PUT', url, json={'mappings': SHOP_MAPPINGS}, allowed=(400,))
        if response.status_code == 400:
            error_type = self._error_type(response)
            if error_type != 'resource_already_exists_exception':
                raise SearchIndexError(f"Could not create index {self._index}: {error_type}")
            logger.debug("Index %s already exists.", self._index)
            return False
        logger.info("Created search index %s.", self._index)
        return True

    def save(self, shop) -> None:
        """Index (or overwrite) the document of a persisted shop."""
        document = shop_to_document(shop)
        url = f"{self._base_url}/{self._index}/_doc/{document['id']}"
        self._request('PUT', url, json=document)
        logger.debug("Shop %s indexed.", document['id'])

    def delete(self, shop_id) -> bool:
        """Remove a shop document. Returns False if it was not indexed."""
        url = f"{self._base_url}/{self._index}/_doc/{shop_id}"
        response = self._request('DELETE', url, allowed=(404,))
        return response.status_code != 404

    def search_by_name_and_range(self, name, after, before, in_vacations, page_request: PageRequest) -> Page:
        """
        Shops whose name contains ``name`` (case-insensitive), created strictly
        between ``after`` and ``before``, with the given vacation flag.
        """
        query = {
            'bool': {
                'filter': [
                    {'wildcard': {'name': {'value': f"*{self._escape_wildcard(name)}*",
                                           'case_insensitive': True}}},
                    {'range': {'created_at': {'gt': after.isoformat(), 'lt': before.isoformat()}}},
                    {'term': {'in_vacations': in_vacations}},
                ],
            },
        }
        if page_request.is_unpaged:
            start, size = 0, MAX_RESULT_WINDOW
        else:
            start, size = page_request.offset, page_request.size

        body = {
            'query': query,
            'from': start,
            'size': size,
            'sort': [{'id': 'asc'}],
            'track_total_hits': True,
        }
        url = f"{self._base_url}/{self._index}/_search"
        payload = self._request('POST', url, json=body).json()

        hits = payload.get('hits', {})
        total = hits.get('total', {})
        total = total.get('value', 0) if isinstance(total, dict) else int(total or 0)
        items = [document_to_shop(hit['_source']) for hit in hits.get('hits', [])]
        if page_request.is_unpaged and total > len(items):
            logger.warning("Unpaged search for %r matched %d shops, only the first %d were returned.",
                           name, total, len(items))
        return Page(items=items, total=total, page_request=page_request)

    def _request(self, method: str, url: str, allowed=(), **kwargs) -> requests.Response:
        try:
            response = self._session.request(method, url, timeout=self._timeout, **kwargs)
            if response.status_code not in allowed:
                response.raise_for_status()
        except requests.RequestException as exc:
            raise SearchIndexError(f"Search index request {method} {url} failed: {exc}") from exc
        return response

    @staticmethod
    def _error_type(response: requests.Response):
        """Return the Elasticsearch error type from an error body, or None."""
        try:
            return response.json()['error']['type']
        except (ValueError, KeyError, TypeError):
            return None

    @staticmethod
    def _escape_wildcard(value: str) -> str:
        return value.replace('\\', '\\\\').replace('*', '\\*').replace('?', '\\?')
