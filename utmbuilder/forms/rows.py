"""Row-rendering hook for the in-place edit row

The host renders each edit row with a URL input (#edit-url-<id>) and a
title input (#edit-title-<id>). inject_original_url_field() adds the
"original URL" input (#edit-original-<id>) and regroups the three inputs
into labeled blocks. Markup that already holds the original URL input is
returned unchanged.
"""

import logging

from bs4 import BeautifulSoup

from utmbuilder.services.metadata_store import MetadataStore


logger = logging.getLogger(__name__)

ORIGINAL_URL_LABEL = 'Original URL (without UTM parameters)'
WRAPPER_CLASS = 'utm-builder-edit-fields'
BLOCK_CLASS = 'utm-builder-edit-block'


def inject_original_url_field(markup: str, row_id: str, original_url: str = '') -> str:
    soup = BeautifulSoup(markup, 'html.parser')
    original_id = f'edit-original-{row_id}'
    if soup.find(id=original_id) is not None:
        return markup

    url_input = soup.find('input', id=f'edit-url-{row_id}')
    if url_input is None:
        logger.debug('Edit row without URL input; nothing to inject.', extra={'row_id': row_id})
        return markup
    title_input = soup.find('input', id=f'edit-title-{row_id}')

    original_input = soup.new_tag(
        'input',
        attrs={
            'type': 'text',
            'id': original_id,
            'name': original_id,
            'value': original_url or '',
            'class': 'text',
            'size': '70',
        },
    )

    wrapper = soup.new_tag('div', attrs={'class': WRAPPER_CLASS})
    url_input.insert_before(wrapper)

    blocks = [('Long URL', url_input), (ORIGINAL_URL_LABEL, original_input)]
    if title_input is not None:
        blocks.append(('Title', title_input))

    for label_text, field_input in blocks:
        block = soup.new_tag('div', attrs={'class': BLOCK_CLASS})
        label = soup.new_tag('label', attrs={'for': field_input['id']})
        label.string = label_text
        block.append(label)
        block.append(field_input.extract())
        wrapper.append(block)

    return str(soup)


def render_edit_row(markup: str, row_id: str, identifier: str, store: MetadataStore) -> str:
    """Inject the original URL input, prefilled from the identifier's metadata."""
    record = store.get(identifier)
    original_url = record.original_url if record is not None else ''
    return inject_original_url_field(markup, row_id, original_url)
