from .autocomplete import SuggestionFetcher, DebouncedQuery
from .field_input import FieldDefinition, FieldInput, PlainFieldInput, RichFieldInput, FIELD_DEFINITIONS, create_field_input
from .form import FormContext, UTMBuilderForm
from .registry import FormRegistry
from .rows import inject_original_url_field, render_edit_row


__all__ = [
    'SuggestionFetcher',
    'DebouncedQuery',
    'FieldDefinition',
    'FieldInput',
    'PlainFieldInput',
    'RichFieldInput',
    'FIELD_DEFINITIONS',
    'create_field_input',
    'FormContext',
    'UTMBuilderForm',
    'FormRegistry',
    'inject_original_url_field',
    'render_edit_row',
]
