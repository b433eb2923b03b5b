"""Synchronization Orchestrator: one UTM builder per form instance

States: disabled (initial) and enabled ("build mode").

    disabled -> enabled   prefill fields from the URL input and set the
                          original URL to the URL without UTM fields
    enabled  -> disabled  clear fields and errors; the URL input is untouched

apply_utms() runs on submit. While enabled it validates the URL and the
required fields, merges the fields into the base URL and writes the result
back into the URL input. While disabled it lets the submission through.

The pending request payload is kept in sync with the fields:

    disabled                        nothing attached (server side: skip)
    enabled, all fields empty       utm_builder_meta_enabled=0 (delete)
    enabled, some field non-empty   full payload (upsert)

A submit blocked by validation drops the pending payload until a field
changes again.

Example:
    >>> form = UTMBuilderForm('new', url_value='https://example.com/page?ref=1')
    >>> form.set_enabled(True)
    >>> form.set_values({'utm_source': 'newsletter', 'utm_medium': 'email', 'utm_campaign': 'spring'})
    >>> form.apply_utms()
    True
    >>> form.url_value
    'https://example.com/page?ref=1&utm_source=newsletter&utm_medium=email&utm_campaign=spring'
"""

import logging
from collections.abc import Callable, Mapping
from enum import StrEnum

from utmbuilder.exceptions import ValidationError
from utmbuilder.forms.field_input import FIELD_DEFINITIONS, FieldInput, create_field_input
from utmbuilder.models import FieldValueSet
from utmbuilder.services.payload import encode_payload
from utmbuilder.utils.constants import (
    FIELD_KEYS,
    FIELD_LABELS,
    HELP_TEXT,
    INVALID_URL_MESSAGE,
    MISSING_FIELDS_MESSAGE,
    MISSING_URL_MESSAGE,
    TOGGLE_OFF_LABEL,
    TOGGLE_ON_LABEL,
    UTMField,
)
from utmbuilder.utils.urlparams import extract_fields, merge_fields, parse_absolute_url, strip_fields
from utmbuilder.utils.validation import find_missing, trim_value


logger = logging.getLogger(__name__)

URL_FIELD = 'url'


class FormContext(StrEnum):
    NEW = 'new'
    EDIT = 'edit'


class UTMBuilderForm:
    """Builder state for a single form (the create form or one edit row).

    Args:
        prefix (str):
            Identifies the instance ('new' or the edit row id).
        context (FormContext):
            Create form or edit row.
        url_value (str):
            Current value of the URL input.
        original_value (str | None):
            Current value of the "original URL" side input, None if the
            form has none.
        fetcher (SuggestionFetcher | None):
            Shared suggestion fetcher; enables rich inputs when usable.
        notify (Callable[[str], None] | None):
            Shows a user-visible error message.
    """

    help_text = HELP_TEXT

    def __init__(
        self,
        prefix: str,
        context: FormContext = FormContext.NEW,
        url_value: str = '',
        original_value: str | None = None,
        fetcher: object | None = None,
        notify: Callable[[str], None] | None = None,
    ):
        self.prefix = str(prefix)
        self.context = FormContext(context)
        self.url_value = url_value or ''
        self.original_value = original_value
        self.enabled = False
        self.errors: set[str] = set()
        self.focused: str | None = None
        self.last_error: ValidationError | None = None
        self._pending: dict[str, str] | None = None
        self._notify = notify
        self.inputs: dict[str, FieldInput] = {
            field.key: create_field_input(
                field,
                on_change=lambda value, key=field.key: self.handle_field_change(key),
                on_error_change=lambda flag, key=field.key: self._set_error(key, flag),
                fetcher=fetcher,
            )
            for field in FIELD_DEFINITIONS
        }

    def __repr__(self) -> str:
        state = 'enabled' if self.enabled else 'disabled'
        return f'<UTMBuilderForm {self.context}:{self.prefix} {state}>'

    @property
    def toggle_label(self) -> str:
        return TOGGLE_ON_LABEL if self.enabled else TOGGLE_OFF_LABEL

    # -------------------------------
    # Field state
    # -------------------------------
    def _set_error(self, field_key: str, flag: bool) -> None:
        if flag:
            self.errors.add(field_key)
        else:
            self.errors.discard(field_key)

    def handle_field_change(self, field_key: str) -> None:
        """A field input committed a new value."""
        self.errors.discard(field_key)
        self.sync_meta_from_original()

    def get_values(self) -> FieldValueSet:
        return {key: trim_value(self.inputs[key].get_value()) for key in FIELD_KEYS}

    def set_values(self, values: Mapping[str, str | None], silent: bool = False) -> None:
        """Set field values; keys not in `values` become empty."""
        for key in FIELD_KEYS:
            self.inputs[key].set_value(trim_value(values.get(key)), silent=True)
        if not silent:
            self.sync_meta_from_original()

    def clear_errors(self) -> None:
        for key in FIELD_KEYS:
            self.inputs[key].clear_error()
        self.errors.clear()
        self.last_error = None

    def mark_missing(self, missing: list[str]) -> None:
        for key in missing:
            self.inputs[key].set_error(True)
        if missing:
            self.inputs[missing[0]].focus()
            self.focused = missing[0]

    # -------------------------------
    # URL handling
    # -------------------------------
    def extract_base_url(self) -> str:
        """URL input without the five UTM fields (unchanged if unparseable)."""
        return strip_fields(trim_value(self.url_value))

    def set_original_value(self, value: str | None) -> None:
        if self.original_value is not None:
            self.original_value = trim_value(value)

    def sync_from_url(self) -> None:
        """Prefill fields and the original URL from the URL input."""
        raw = trim_value(self.url_value)
        if not raw:
            self.set_original_value('')
            self.set_values({}, silent=True)
            return

        extracted = extract_fields(raw)
        self.set_values(extracted, silent=True)
        self.set_original_value(self.extract_base_url())

    # -------------------------------
    # State machine
    # -------------------------------
    def toggle(self) -> None:
        self.set_enabled(not self.enabled)

    def set_enabled(self, enabled: bool, prefill: bool = True) -> None:
        """Switch build mode

        Enabling with `prefill` reads the fields from the URL input, unless
        some field already holds a value (those are kept as-is).
        """
        self.enabled = bool(enabled)
        if self.enabled:
            if prefill and not any(self.get_values().values()):
                self.sync_from_url()
            self.sync_meta_from_original()
        else:
            for query_input in self.inputs.values():
                query = getattr(query_input, 'query', None)
                if query is not None:
                    query.cancel()
            self.set_values({}, silent=True)
            self.clear_errors()
            self.set_original_value('')
            self._pending = None
        logger.debug('UTM builder toggled.', extra={'form': self.prefix, 'enabled': self.enabled})

    def reset(self) -> None:
        """Back to the initial state (after a successful add)."""
        self.set_enabled(False)
        self.focused = None

    def destroy(self) -> None:
        """Tear down the instance; in-flight suggestion requests are discarded."""
        for field_input in self.inputs.values():
            field_input.destroy()
        self._pending = None

    # -------------------------------
    # Payload
    # -------------------------------
    def sync_meta_from_original(self) -> None:
        """Re-derive the pending payload from the original URL and the fields."""
        if not self.enabled:
            self._pending = None
            return

        values = self.get_values()
        original = trim_value(self.original_value) if self.original_value is not None else self.extract_base_url()
        if original or any(values.values()):
            self._pending = encode_payload(True, original, values)
        else:
            self._pending = encode_payload(False)

    def meta_request_params(self) -> dict[str, str]:
        """Form fields to attach to the outbound create/update request."""
        return dict(self._pending) if self._pending is not None else {}

    # -------------------------------
    # Submit
    # -------------------------------
    def build(self) -> str:
        """Validate the form and return the UTM-tagged URL

        Raises:
            ValidationError:
                The URL is missing or not absolute, or required fields are blank.
        """
        raw_url = trim_value(self.url_value)
        if not raw_url:
            raise ValidationError(MISSING_URL_MESSAGE, field=URL_FIELD)
        if parse_absolute_url(raw_url) is None:
            raise ValidationError(INVALID_URL_MESSAGE, field=URL_FIELD)

        values = self.get_values()
        missing = find_missing(values)
        if missing:
            labels = ', '.join(FIELD_LABELS[UTMField(key)] for key in missing)
            raise ValidationError(MISSING_FIELDS_MESSAGE.format(labels=labels), missing=missing)

        base_url = strip_fields(raw_url)
        merged = merge_fields(base_url, values)
        if merged is None:
            raise ValidationError(INVALID_URL_MESSAGE, field=URL_FIELD)
        return merged

    def apply_utms(self) -> bool:
        """Run before submit; False means the submission must be aborted."""
        if not self.enabled:
            return True

        self.clear_errors()
        try:
            merged = self.build()
        except ValidationError as e:
            self.last_error = e
            self._pending = None
            if e.missing:
                self.mark_missing(e.missing)
            else:
                self.focused = e.field
            if self._notify is not None:
                self._notify(e.message)
            logger.info('UTM build rejected.', extra={'form': self.prefix, 'missing': e.missing, 'field': e.field})
            return False

        base_url = self.extract_base_url()
        self.url_value = merged
        if self.original_value is not None:
            self.original_value = base_url
        self._pending = encode_payload(True, base_url, self.get_values())
        return True
