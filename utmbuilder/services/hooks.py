"""Entity lifecycle hooks

Called by the host after a short link is created, edited or deleted. They
only react to these operations: nothing raised on the metadata path reaches
the caller, and the host's result is never changed.

Example:
    >>> hooks = LinkLifecycleHooks(store)
    >>> hooks.on_link_created('abc1', True, request_params)
    UpsertPayload(...)
    >>> hooks.on_link_edited('abc1', 'xyz9', 'success', {})
    SkipPayload()
    >>> hooks.on_link_deleted('xyz9', 1)
"""

import logging
from collections.abc import Mapping
from typing import Any

from utmbuilder.dao.exceptions import DAOError
from utmbuilder.exceptions import UTMBuilderError
from utmbuilder.services.metadata_store import MetadataStore
from utmbuilder.services.payload import DeletePayload, RequestPayload, apply_payload, derive_payload


logger = logging.getLogger(__name__)


def _succeeded(status: Any) -> bool:
    if isinstance(status, bool):
        return status
    return str(status).strip().lower() == 'success'


class LinkLifecycleHooks:
    def __init__(self, store: MetadataStore):
        self.store = store

    def _apply(
        self,
        params: Mapping[str, Any],
        identifier: str,
        previous_identifier: str | None = None,
        delete_when_disabled: bool = False,
    ) -> RequestPayload | None:
        try:
            if delete_when_disabled and not self.store.settings.enabled:
                payload = DeletePayload()
            else:
                payload = derive_payload(params, self.store.settings)
            apply_payload(payload, self.store, identifier, previous_identifier)
        except (UTMBuilderError, DAOError, KeyError, ValueError, TypeError):
            logger.exception('Metadata sync failed; the short link operation is unaffected.', extra={'identifier': identifier})
            return None
        return payload

    def on_link_created(self, identifier: str, success: bool, params: Mapping[str, Any]) -> RequestPayload | None:
        """After create: store the request's metadata for the new identifier."""
        if not success:
            return None
        return self._apply(params, identifier)

    def on_link_edited(self, previous_identifier: str, identifier: str, status: Any, params: Mapping[str, Any]) -> RequestPayload | None:
        """After edit: apply the request's payload, relocating metadata on rename

        With metadata capture switched off, an edit drops whatever is stored
        for the edited link (old and new identifier). Untouched links keep theirs.
        """
        if not _succeeded(status):
            return None
        return self._apply(params, identifier, previous_identifier, delete_when_disabled=True)

    def on_link_deleted(self, identifier: str, rows_affected: int) -> None:
        """After delete: drop the identifier's metadata (no-op when none is stored)."""
        logger.debug('Short link deleted.', extra={'identifier': identifier, 'rows_affected': rows_affected})
        self.store.delete(identifier)
