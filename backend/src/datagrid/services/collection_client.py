"""HTTP client for remote paginated collections."""

import logging
from typing import Any, Dict, List, Tuple

import httpx

from datagrid.core.config import Settings

logger = logging.getLogger(__name__)


class CollectionClient:
    """Fetches pages of a remote collection over HTTP.

    Instances are callable with the query payload produced by
    ``QueryDescriptor.to_params()``, so they can be handed directly to the
    query coordinator as its fetcher.
    """

    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport = None):
        self.base_url = settings.collection_base_url
        self.timeout = settings.collection_timeout
        self.page_offset = settings.page_offset
        self.empty_on_not_found = settings.empty_on_not_found
        self.transport = transport

    def build_query(self, params: Dict[str, Any]) -> List[Tuple[str, str]]:
        """Translate a query payload into query string pairs."""
        query = [
            ("page", str(params["page"] + self.page_offset)),
            ("pageSize", str(params["pageSize"])),
        ]

        for column_filter in params.get("columnFilters", []):
            value = column_filter.get("value")
            values = value if isinstance(value, list) else [value]
            for item in values:
                query.append((column_filter["id"], str(item)))

        for sort in params.get("sorting", []):
            query.append(("sort", f"{sort['id']}:{'desc' if sort.get('desc') else 'asc'}"))

        return query

    async def __call__(self, params: Dict[str, Any]) -> Dict[str, Any]:
        query = self.build_query(params)
        logger.info(f"Fetching {self.base_url} with {query}")

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            response = await client.get(self.base_url, params=query)
            if response.status_code == 404 and self.empty_on_not_found:
                # The collection answers 404 when a filter matches nothing
                logger.info("No rows matched, returning an empty page")
                return {"results": [], "info": {"count": 0, "pages": 0}}
            response.raise_for_status()
            return response.json()
