"""Client side of the Suggestion Source

Classes:
    SuggestionFetcher:
        Query the autocomplete endpoint over HTTP (httpx) and cache results
        per "field::query" for the lifetime of the fetcher. One fetcher is
        shared by every form on a page; its cache is the only state they share.

    DebouncedQuery:
        Per-input scheduler. Coalesces keystrokes within the debounce window,
        numbers every request and applies only the response of the latest one.
        cancel() discards the pending and in-flight requests without side effects.

Example:
    >>> fetcher = SuggestionFetcher('https://sho.rt/admin/admin-ajax.php', nonce='a1b2c3d4e5')
    >>> await fetcher.fetch('utm_source', 'New ')
    ['news', 'newsletter']
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable

import httpx

from utmbuilder.utils.constants import AUTOCOMPLETE_ACTION, AUTOCOMPLETE_CLIENT_LIMIT, AUTOCOMPLETE_DEBOUNCE_SECONDS
from utmbuilder.utils.validation import trim_value


logger = logging.getLogger(__name__)


class SuggestionFetcher:
    def __init__(
        self,
        endpoint: str,
        nonce: str = '',
        client: httpx.AsyncClient | None = None,
        limit: int = AUTOCOMPLETE_CLIENT_LIMIT,
        action: str = AUTOCOMPLETE_ACTION,
        timeout: float = 5.0,
    ):
        self.endpoint = endpoint
        self.nonce = nonce
        self.limit = limit
        self.action = action
        self._client = client
        self._owns_client = client is None
        self._timeout = timeout
        self._cache: dict[str, list[str]] = {}

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    async def aclose(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    async def fetch(self, field_key: str, query: str | None) -> list[str]:
        """Return suggestions for `field_key`; [] on any transport or protocol failure."""
        field_key = trim_value(field_key).lower()
        query = trim_value(query).lower()
        cache_key = f'{field_key}::{query}'
        if cache_key in self._cache:
            return list(self._cache[cache_key])
        if not self.endpoint:
            return []

        params = {'action': self.action, 'field': field_key, 'limit': str(self.limit), 'nonce': self.nonce}
        if query:
            params['search'] = query

        try:
            response = await self.client.get(self.endpoint, params=params, headers={'Accept': 'application/json'})
        except httpx.HTTPError:
            logger.info('Suggestion request failed.', extra={'field': field_key})
            return []
        if not response.is_success:
            return []

        try:
            data = response.json()
        except ValueError:
            return []

        if not isinstance(data, dict):
            return []
        values = data.get('values')
        if data.get('success') and isinstance(values, list):
            self._cache[cache_key] = list(values)
            return list(values)
        return []


class DebouncedQuery:
    def __init__(
        self,
        fetch: Callable[[str], Awaitable[list[str]]],
        on_results: Callable[[list[str]], None],
        delay: float = AUTOCOMPLETE_DEBOUNCE_SECONDS,
    ):
        self._fetch = fetch
        self._on_results = on_results
        self.delay = delay
        self.sequence = 0
        self.loading = False
        self.last_query: str | None = None
        self._pending: asyncio.Task | None = None

    def schedule(self, query: str | None) -> asyncio.Task | None:
        """Debounce a keystroke; returns the scheduled task, or None if nothing changed

        Must be called from a running event loop.
        """
        normalized = trim_value(query).lower()
        if normalized == self.last_query:
            return None
        self._cancel_pending()
        self._pending = asyncio.get_running_loop().create_task(self._debounced(normalized))
        return self._pending

    async def _debounced(self, query: str) -> None:
        await asyncio.sleep(self.delay)
        self.last_query = query
        await self.load(query)

    async def load(self, query: str) -> None:
        """Fetch immediately; a response is applied only if no newer request started."""
        self.sequence += 1
        current = self.sequence
        self.loading = True

        values = await self._fetch(query)
        if current != self.sequence:
            logger.debug('Discarding stale suggestion response.', extra={'query': query})
            return
        self.loading = False
        self._on_results(list(values) if isinstance(values, list) else [])

    def _cancel_pending(self) -> None:
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = None

    def cancel(self) -> None:
        self._cancel_pending()
        self.sequence += 1  # invalidates in-flight responses
        self.loading = False
        self.last_query = None
