"""Search-match emphasis for song list cells.

The terms of the filter text are split the same way the search index
splits them and every occurrence in the displayed text is wrapped in
``<b>...</b>``.  The rest of the text is HTML-escaped.
"""

import html
import re

from .models import Song
from .parser import first_lyrics_line

TERM_SPLIT_RE = re.compile(r"[- .,;:_/+'\"!?()\[\]]+")


def filter_terms(filter_text: str | None) -> list[str]:
    """Return the non-empty search terms of *filter_text*, lowercased."""
    if not filter_text:
        return []
    return [term for term in TERM_SPLIT_RE.split(filter_text.lower()) if term]


def highlight_matches(text: str, filter_text: str | None) -> str:
    """Return *text* as HTML with every occurrence of a filter term in bold."""
    terms = filter_terms(filter_text)
    if not terms:
        return html.escape(text)
    # longest first, so "amaz" wins over "a" at the same position
    pattern = re.compile(
        "|".join(re.escape(t) for t in sorted(set(terms), key=len, reverse=True)),
        re.IGNORECASE,
    )
    parts: list[str] = []
    last = 0
    for m in pattern.finditer(text):
        parts.append(html.escape(text[last : m.start()]))
        parts.append(f"<b>{html.escape(m.group())}</b>")
        last = m.end()
    parts.append(html.escape(text[last:]))
    return "".join(parts)


def song_cell_text(song: Song, filter_text: str | None = None) -> tuple[str, str]:
    """Return the highlighted title and first lyrics line shown in a song list."""
    return (
        highlight_matches(song.title or "", filter_text),
        highlight_matches(first_lyrics_line(song), filter_text),
    )
