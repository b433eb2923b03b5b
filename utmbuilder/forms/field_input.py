"""Inputs for the five UTM fields

FieldInput is the single interface the form talks to. Two independent
implementations exist and one is chosen when the input is created:

    RichFieldInput   free-text input with debounced suggestions; the value is
                     committed on blur or when a suggestion is picked
    PlainFieldInput  plain text input; every keystroke is committed

create_field_input() picks RichFieldInput only when a usable suggestion
fetcher is available.
"""

import asyncio
import inspect
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from utmbuilder.forms.autocomplete import DebouncedQuery
from utmbuilder.utils.constants import FIELD_LABELS, REQUIRED_KEYS, UTMField
from utmbuilder.utils.validation import trim_value


logger = logging.getLogger(__name__)

type ValueCallback = Callable[[str], None]
type ErrorCallback = Callable[[bool], None]


@dataclass(frozen=True)
class FieldDefinition:
    key: str
    label: str
    required: bool = False


FIELD_DEFINITIONS = tuple(FieldDefinition(key=f.value, label=FIELD_LABELS[f], required=f.value in REQUIRED_KEYS) for f in UTMField)


@runtime_checkable
class FieldInput(Protocol):
    field: FieldDefinition
    has_error: bool
    focused: bool

    def set_value(self, value: str, silent: bool = False) -> None: ...

    def get_value(self) -> str: ...

    def set_error(self, flag: bool) -> None: ...

    def clear_error(self) -> None: ...

    def focus(self) -> None: ...

    def destroy(self) -> None: ...


class PlainFieldInput:
    def __init__(self, field: FieldDefinition, on_change: ValueCallback | None = None, on_error_change: ErrorCallback | None = None, initial: str = ''):
        self.field = field
        self.value = trim_value(initial)
        self.has_error = False
        self.focused = False
        self._on_change = on_change
        self._on_error_change = on_error_change

    @property
    def placeholder(self) -> str:
        return self.field.label

    @property
    def label(self) -> str:
        return f'{self.field.label} *' if self.field.required else self.field.label

    def input(self, text: str) -> None:
        """User typed into the input."""
        self.clear_error()
        self.value = trim_value(text)
        if self._on_change is not None:
            self._on_change(self.value)

    def set_value(self, value: str, silent: bool = False) -> None:
        self.value = trim_value(value)
        if not silent and self._on_change is not None:
            self._on_change(self.value)

    def get_value(self) -> str:
        return self.value

    def set_error(self, flag: bool) -> None:
        self.has_error = bool(flag)
        if self._on_error_change is not None:
            self._on_error_change(self.has_error)

    def clear_error(self) -> None:
        self.set_error(False)

    def focus(self) -> None:
        self.focused = True

    def destroy(self) -> None:
        self._on_change = None


class RichFieldInput:
    """Autocompleting input backed by a suggestion fetcher.

    Args:
        fetch (Callable[[str, str], Awaitable[list[str]]]):
            Coroutine function (field_key, query) -> values, e.g. SuggestionFetcher.fetch.
    """

    helper_text = 'This field is required'

    def __init__(self, field: FieldDefinition, fetch, on_change: ValueCallback | None = None, on_error_change: ErrorCallback | None = None, initial: str = ''):
        self.field = field
        self.value = trim_value(initial)
        self.input_value = self.value
        self.options: list[str] = []
        self.has_error = False
        self.focused = False
        self._on_change = on_change
        self._on_error_change = on_error_change
        self.query = DebouncedQuery(fetch=lambda query: fetch(field.key, query), on_results=self._set_options)

    @property
    def loading(self) -> bool:
        return self.query.loading

    def _set_options(self, values: list[str]) -> None:
        self.options = values

    def _emit(self, value: str) -> None:
        self.value = trim_value(value)
        self.input_value = self.value
        self.set_error(False)
        if self._on_change is not None:
            self._on_change(self.value)

    async def open(self) -> None:
        """Load the unfiltered option list when the input is first shown."""
        self.query.last_query = ''
        await self.query.load('')

    def input(self, text: str) -> asyncio.Task | None:
        """User typed: update the visible text and debounce a suggestion query."""
        self.input_value = text or ''
        self.set_error(False)
        try:
            return self.query.schedule(self.input_value)
        except RuntimeError:
            # No running event loop: suggestions are unavailable, typing still works
            return None

    def select(self, option: str | None) -> None:
        self._emit(option or '')

    def blur(self) -> None:
        self._emit(self.input_value)

    def set_value(self, value: str, silent: bool = False) -> None:
        if silent:
            self.value = trim_value(value)
            self.input_value = self.value
            self.set_error(False)
        else:
            self._emit(value)

    def get_value(self) -> str:
        return self.value

    def set_error(self, flag: bool) -> None:
        self.has_error = bool(flag)
        if self._on_error_change is not None:
            self._on_error_change(self.has_error)

    def clear_error(self) -> None:
        self.set_error(False)

    def focus(self) -> None:
        self.focused = True

    def destroy(self) -> None:
        self.query.cancel()
        self._on_change = None


def create_field_input(
    field: FieldDefinition,
    on_change: ValueCallback | None = None,
    on_error_change: ErrorCallback | None = None,
    fetcher: object | None = None,
    initial: str = '',
) -> FieldInput:
    """Create a RichFieldInput when `fetcher` offers a coroutine `fetch`, else a PlainFieldInput."""
    fetch = getattr(fetcher, 'fetch', None)
    if fetch is not None and inspect.iscoroutinefunction(fetch):
        return RichFieldInput(field, fetch, on_change=on_change, on_error_change=on_error_change, initial=initial)
    if fetcher is not None:
        logger.debug('Suggestion fetcher unusable; falling back to plain inputs.', extra={'field': field.key})
    return PlainFieldInput(field, on_change=on_change, on_error_change=on_error_change, initial=initial)
