"""Registry of builder instances on an admin page

One UTMBuilderForm for the create form and one per edit row, keyed by row
id. Rows are registered and torn down by explicit lifecycle events; forms
never share state apart from the suggestion fetcher's cache.
"""

import logging
from collections.abc import Callable, Mapping
from typing import Any

from utmbuilder.forms.form import FormContext, UTMBuilderForm
from utmbuilder.utils.urlparams import extract_fields


logger = logging.getLogger(__name__)

ADD_ACTION = 'add'
EDIT_SAVE_ACTION = 'edit_save'


class FormRegistry:
    def __init__(self, fetcher: object | None = None, notify: Callable[[str], None] | None = None):
        self.fetcher = fetcher
        self.notify = notify
        self.new_form: UTMBuilderForm | None = None
        self.edit_forms: dict[str, UTMBuilderForm] = {}

    def setup_new_form(self, url_value: str = '') -> UTMBuilderForm:
        if self.new_form is None:
            self.new_form = UTMBuilderForm(
                'new',
                context=FormContext.NEW,
                url_value=url_value,
                fetcher=self.fetcher,
                notify=self.notify,
            )
        return self.new_form

    def row_added(self, row_id: str, url_value: str = '', original_value: str = '') -> UTMBuilderForm:
        """Register the builder of an edit row (idempotent)

        Rows whose URL already carries UTM fields start in build mode with
        those fields filled in.
        """
        row_id = str(row_id)
        if row_id in self.edit_forms:
            return self.edit_forms[row_id]

        form = UTMBuilderForm(
            row_id,
            context=FormContext.EDIT,
            url_value=url_value,
            original_value=original_value or '',
            fetcher=self.fetcher,
            notify=self.notify,
        )
        existing = extract_fields(url_value)
        if any(value.strip() for value in existing.values()):
            form.set_values(existing, silent=True)
            if not form.original_value:
                form.set_original_value(form.extract_base_url())
            form.set_enabled(True, prefill=False)

        self.edit_forms[row_id] = form
        logger.debug('Edit row registered.', extra={'row_id': row_id, 'enabled': form.enabled})
        return form

    def row_removed(self, row_id: str) -> None:
        form = self.edit_forms.pop(str(row_id), None)
        if form is not None:
            form.destroy()

    def get(self, row_id: str) -> UTMBuilderForm | None:
        return self.edit_forms.get(str(row_id))

    def before_add(self) -> bool:
        """Run the create form's builder; False aborts the submission."""
        if self.new_form is None:
            return True
        return self.new_form.apply_utms()

    def after_add(self, success: bool) -> None:
        if success and self.new_form is not None:
            self.new_form.reset()

    def before_edit_save(self, row_id: str) -> bool:
        form = self.get(row_id)
        if form is None:
            return True
        return form.apply_utms()

    def inject_payload(self, params: Mapping[str, Any]) -> dict[str, Any]:
        """Attach the matching form's payload to an outbound host request

        `add` gets the create form's payload; `edit_save` gets the payload of
        the edit row named by the request's `id`. Other requests pass through.
        """
        params = dict(params)
        action = params.get('action')
        if action == ADD_ACTION:
            form = self.new_form
        elif action == EDIT_SAVE_ACTION:
            form = self.get(params.get('id', ''))
        else:
            form = None

        if form is not None:
            params.update(form.meta_request_params())
        return params
