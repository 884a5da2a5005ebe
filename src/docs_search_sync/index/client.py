"""
Algolia Index Client

This module provides a small async client for the three index operations an
index synchronization run needs, over the Algolia REST API:

- bulk save of records (with server-assigned ids for records lacking one)
- cursor-paginated enumeration of the ids currently in the index
- bulk delete by id

Design Goals
------------
- No retries: any transport or API failure surfaces immediately
- Strict response validation
- Injectable transport and base URL for testing
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set
from urllib.parse import quote

import httpx

from ..config import get_settings
from ..core.errors import IndexRequestError, IndexResponseError
from ..records.models import SearchRecord

logger = logging.getLogger("docsync.index")

DEFAULT_SAVE_BATCH_SIZE = 10000
DEFAULT_DELETE_BATCH_SIZE = 1000
DEFAULT_BROWSE_PAGE_SIZE = 1000
DEFAULT_TIMEOUT = 30.0


def _chunks(items: Sequence[Any], size: int) -> Iterable[Sequence[Any]]:
    if size <= 0:
        raise ValueError("batch size must be positive")
    for start in range(0, len(items), size):
        yield items[start : start + size]


class AlgoliaIndexClient:
    """
    Client bound to a single Algolia index.
    """

    def __init__(
        self,
        app_id: Optional[str] = None,
        api_key: Optional[str] = None,
        index_name: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Initialize an index client.

        Parameters
        ----------
        app_id : Optional[str]
            Algolia application id. Defaults to the ALGOLIA_APP_ID setting.

        api_key : Optional[str]
            Admin API key. Defaults to the ALGOLIA_API_KEY setting.

        index_name : Optional[str]
            Target index. Defaults to the DOCS_INDEX_NAME setting.

        base_url : Optional[str]
            API host. Defaults to the application's write host.

        timeout : Optional[float]
            HTTP timeout for each request.

        transport : Optional[httpx.AsyncBaseTransport]
            Custom httpx transport, mainly for tests.
        """
        if app_id is None or api_key is None or index_name is None:
            cfg = get_settings()
            app_id = app_id if app_id is not None else cfg.algolia_app_id
            index_name = index_name if index_name is not None else cfg.docs_index_name
            if api_key is None and cfg.algolia_api_key is not None:
                api_key = cfg.algolia_api_key.get_secret_value()

        self.app_id = app_id
        self.api_key = api_key
        self.index_name = index_name

        if not self.app_id or not self.api_key or not self.index_name:
            raise ValueError("app_id, api_key and index_name are required")

        self.base_url = (base_url or f"https://{self.app_id}.algolia.net").rstrip("/")
        self.timeout = timeout if timeout is not None else DEFAULT_TIMEOUT
        self._transport = transport

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @property
    def _index_url(self) -> str:
        return f"{self.base_url}/1/indexes/{quote(self.index_name, safe='')}"

    def _headers(self) -> Dict[str, str]:
        return {
            "X-Algolia-Application-Id": self.app_id,
            "X-Algolia-API-Key": self.api_key,
        }

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.timeout,
            headers=self._headers(),
            transport=self._transport,
        )

    async def _post(
        self,
        client: httpx.AsyncClient,
        path: str,
        payload: Dict[str, Any],
    ) -> Dict[str, Any]:
        url = f"{self._index_url}/{path}"
        try:
            resp = await client.post(url, json=payload)
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.error(
                "Index request failed: POST %s -> %d",
                path,
                exc.response.status_code,
            )
            raise IndexRequestError(
                f"Index request to {path} failed with status {exc.response.status_code}: "
                f"{exc.response.text}",
                status_code=exc.response.status_code,
            ) from exc
        except httpx.HTTPError as exc:
            logger.error("Index request failed: POST %s (%s)", path, type(exc).__name__)
            raise IndexRequestError(
                f"Index request to {path} failed: {type(exc).__name__}"
            ) from exc

        try:
            data = resp.json()
        except ValueError as exc:
            raise IndexResponseError(f"Index response from {path} is not JSON") from exc

        if not isinstance(data, dict):
            raise IndexResponseError(f"Index response from {path} must be an object")
        return data

    @staticmethod
    def _extract_object_ids(data: Dict[str, Any]) -> List[str]:
        ids = data.get("objectIDs")
        if not isinstance(ids, list) or not all(isinstance(i, str) for i in ids):
            raise IndexResponseError("Batch response missing 'objectIDs' list.")
        return ids

    async def _batch(
        self,
        client: httpx.AsyncClient,
        requests: Sequence[Dict[str, Any]],
    ) -> List[str]:
        data = await self._post(client, "batch", {"requests": list(requests)})
        return self._extract_object_ids(data)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def save_objects(
        self,
        records: Sequence[SearchRecord],
        batch_size: Optional[int] = None,
        auto_generate_object_id: bool = True,
    ) -> List[str]:
        """
        Upsert records into the index.

        Records carrying an ``objectID`` replace the stored object with that
        id. Records without one are added under an id chosen by the index,
        which is only allowed with ``auto_generate_object_id``.

        Returns
        -------
        List[str]
            The ids of all saved objects, in record order.

        Raises
        ------
        ValueError
            If a record has no id and auto-generation is disabled. Raised
            before any request is sent.
        IndexRequestError, IndexResponseError
            If any batch fails.
        """
        if not auto_generate_object_id:
            for position, record in enumerate(records):
                if record.object_id is None:
                    raise ValueError(
                        f"Record at position {position} has no objectID and "
                        "auto_generate_object_id is disabled"
                    )

        requests = [
            {
                "action": "addObject" if record.object_id is None else "updateObject",
                "body": record.to_index_object(),
            }
            for record in records
        ]

        object_ids: List[str] = []
        async with self._client() as client:
            for chunk in _chunks(requests, batch_size or DEFAULT_SAVE_BATCH_SIZE):
                object_ids.extend(await self._batch(client, chunk))

        logger.debug("Saved %d objects to %s", len(object_ids), self.index_name)
        return object_ids

    async def browse_object_ids(self, page_size: Optional[int] = None) -> Set[str]:
        """
        Collect the id of every object currently in the index.
        """
        object_ids: Set[str] = set()
        payload: Dict[str, Any] = {
            "attributesToRetrieve": ["objectID"],
            "hitsPerPage": page_size or DEFAULT_BROWSE_PAGE_SIZE,
        }

        async with self._client() as client:
            while True:
                data = await self._post(client, "browse", payload)

                hits = data.get("hits")
                if not isinstance(hits, list):
                    raise IndexResponseError("Browse response missing 'hits' list.")

                for hit in hits:
                    if not isinstance(hit, dict) or "objectID" not in hit:
                        raise IndexResponseError(f"Malformed browse hit: {hit!r}")
                    object_ids.add(str(hit["objectID"]))

                cursor = data.get("cursor")
                if not cursor:
                    break
                payload = {"cursor": cursor}

        return object_ids

    async def delete_objects(
        self,
        object_ids: Sequence[str],
        batch_size: Optional[int] = None,
    ) -> List[str]:
        """
        Delete objects by id. Sends nothing for an empty id list.

        Returns
        -------
        List[str]
            The ids the index acknowledged as deleted.
        """
        if not object_ids:
            return []

        requests = [
            {"action": "deleteObject", "body": {"objectID": object_id}}
            for object_id in object_ids
        ]

        deleted: List[str] = []
        async with self._client() as client:
            for chunk in _chunks(requests, batch_size or DEFAULT_DELETE_BATCH_SIZE):
                deleted.extend(await self._batch(client, chunk))

        return deleted
