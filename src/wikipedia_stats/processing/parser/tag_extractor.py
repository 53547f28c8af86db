"""
Literal-search extraction of named elements from a block of markup.

Elements are located by scanning for ``<name`` followed by a tag boundary and
then for the first literal ``</name>`` after the opening tag. No DOM is built
and nothing is validated: an opening tag that is never closed simply yields no
element.
"""
from typing import Iterator, Optional, Tuple

TAG_NAME_BOUNDARY = frozenset('> \t\r\n/')


def _find_open_tag(text: str, tag_name: str, start: int) -> Optional[Tuple[int, int, bool]]:
    """
    Locate the next opening tag for ``tag_name`` at or after ``start``.

    Returns (tag start, index just past '>', self-closing) or None.
    """
    needle = '<' + tag_name
    pos = text.find(needle, start)
    while pos != -1:
        after = pos + len(needle)
        if after < len(text) and text[after] in TAG_NAME_BOUNDARY:
            close = text.find('>', after)
            if close == -1:
                return None
            return pos, close + 1, text[close - 1] == '/'
        pos = text.find(needle, after)
    return None


def _iter_spans(text: str, tag_name: str) -> Iterator[Tuple[int, int, int, int]]:
    """Yield (element start, body start, body end, element end) for each element."""
    closing = '</' + tag_name + '>'
    cursor = 0
    while True:
        found = _find_open_tag(text, tag_name, cursor)
        if found is None:
            return
        start, body_start, self_closing = found
        if self_closing:
            cursor = body_start
            continue
        body_end = text.find(closing, body_start)
        if body_end == -1:
            return
        end = body_end + len(closing)
        yield start, body_start, body_end, end
        cursor = end


def extract_all(text: str, tag_name: str) -> Iterator[str]:
    """
    Lazily yield every ``<tag_name ...>...</tag_name>`` substring of ``text``.

    Args:
        text: the xml of the parent element, e.g. a ``<page>`` block
        tag_name: element name to look for, e.g. ``revision``

    Returns:
        Iterator over the complete elements, in document order
    """
    for start, _, _, end in _iter_spans(text, tag_name):
        yield text[start:end]


def extract_text(elem_xml: str, tag_name: str) -> str:
    """
    Return the inner content of the first ``tag_name`` element, or ``""``.

    Args:
        elem_xml: the xml of an element
        tag_name: element name to look for, e.g. ``title`` in ``<title>XYZ</title>``
    """
    for _, body_start, body_end, _ in _iter_spans(elem_xml, tag_name):
        return elem_xml[body_start:body_end]
    return ""


def strip_elements(text: str, tag_name: str) -> str:
    """Return ``text`` with every ``tag_name`` element cut out."""
    pieces = []
    cursor = 0
    for start, _, _, end in _iter_spans(text, tag_name):
        pieces.append(text[cursor:start])
        cursor = end
    pieces.append(text[cursor:])
    return "".join(pieces)
