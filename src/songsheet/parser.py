"""Break a :class:`~songsheet.models.Song` down into its elements.

The lyrics field is a small line-based grammar:

  1. A line holding a ``[...]`` pair carries a translation.  The text before
     the first ``[`` and after the last ``]`` stays lyrics, so
     ``"   [Translation]   "`` yields LYRICS, TRANSLATION, LYRICS.
  2. A line made of chord names only (``C   G/B   Am7``) is a chord line.
  3. Everything else is lyrics, whitespace-only lines included.

Every physical line that produces output is closed by a NEW_LINE element,
one more NEW_LINE separates the lyrics from the copyright block::

    TITLE  CHORDS NEW_LINE  LYRICS NEW_LINE  LYRICS TRANSLATION NEW_LINE
    NEW_LINE  COPYRIGHT  COPYRIGHT

Malformed input never raises: unmatched brackets are plain lyrics.
"""

import re
from collections.abc import Iterable

from .models import Song, SongElement, SongElementKind

LABEL_MUSIC = "Music: "
LABEL_TEXT = "Text: "
LABEL_TRANSLATION = "Translation: "
LABEL_PUBLISHER = "Publisher: "

NEWLINE_RE = re.compile(r"\r?\n")

# Greedy on purpose: "a [b] c [d] e" -> prefix "a [b] c ", translation "d"
TRANSLATION_RE = re.compile(r"^(.*)\[(.*)\](.*)$")

# Chord name as written above lyrics.
# Handles:
#   Standard:          A, Am, Am7, Amaj7, Asus4, G/B, C#m7, Bb, Hm (German)
#   Extensions:        C7b9, Dadd9, E+, F#dim7
#   Standalone bass:   /b, /F#
#   Parenthesised:     (G), (Em7)
CHORD_NAME_RE = re.compile(
    r"^\(?(?:"
    r"[A-H][#b]?(?:maj|min|m|M|aug|dim|sus|add|\+|°|ø)?\d*(?:(?:maj|sus|add|b|#|-|\+)\d+)*"
    r"(?:\/[A-Ha-h][#b]?)?"
    r"|"
    r"\/[A-Ha-h][#b]?"
    r")\)?$"
)

# Bar lines and repeat marks that may sit between chords: | || |: :| x2 (2x)
CHORD_LINE_MARK_RE = re.compile(r"^(?::?\|{1,2}:?|\(?[x×]\d+\)?|\(?\d+[x×]\)?)$")

# Fallback for chord lines with unusual chord names (e.g. "A     B     X"):
# mostly spaces and only short tokens starting with an uppercase letter.
_MIN_SPACE_RATIO = 0.5
_MAX_FALLBACK_TOKEN_LENGTH = 7


def parse(
    song: Song,
    include_chords: bool = True,
    include_translation: bool = True,
    include_copyright: bool = True,
    include_title: bool = True,
) -> tuple[SongElement, ...]:
    """Return the elements of *song* in display order.

    Args:
        song:                The song to parse.
        include_chords:      Emit CHORDS elements; excluded chord lines vanish
                             completely, including their NEW_LINE.
        include_translation: Emit TRANSLATION elements; lines holding nothing
                             but a translation vanish when excluded.
        include_copyright:   Emit COPYRIGHT elements for the non-blank
                             copyright fields.
        include_title:       Emit the leading TITLE element.

    Returns:
        An immutable sequence of :class:`~songsheet.models.SongElement`.
    """
    elements: list[SongElement] = []

    if include_title:
        elements.append(SongElement(SongElementKind.TITLE, song.title or ""))

    for line in _lyrics_lines(song.lyrics):
        line_elements = _parse_line(line, include_chords, include_translation)
        if line_elements is None:
            continue
        elements.extend(line_elements)
        elements.append(_new_line())

    # separates the lyrics from the copyright block
    elements.append(_new_line())

    if include_copyright:
        elements.extend(_copyright_elements(song))

    return tuple(elements)


def first_lyrics_line(song: Song) -> str:
    """Return the first non-blank line that is neither chords nor translation."""
    for line in _lyrics_lines(song.lyrics):
        if not line.strip() or TRANSLATION_RE.match(line) or is_chords_line(line):
            continue
        return line
    return ""


def has_chords(elements: Iterable[SongElement]) -> bool:
    """Return True if the parsed *elements* contain at least one chord line."""
    return any(e.kind is SongElementKind.CHORDS for e in elements)


def is_chords_line(line: str) -> bool:
    """Return True if *line* contains guitar chords only."""
    if TRANSLATION_RE.match(line):
        return False
    tokens = line.split()
    if not tokens:
        return False
    if all(CHORD_NAME_RE.match(t) or CHORD_LINE_MARK_RE.match(t) for t in tokens):
        return True
    return _space_ratio(line) >= _MIN_SPACE_RATIO and all(
        t[0].isupper() and len(t) <= _MAX_FALLBACK_TOKEN_LENGTH for t in tokens
    )


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _lyrics_lines(lyrics: str | None) -> list[str]:
    if not lyrics:
        return []
    return NEWLINE_RE.split(lyrics)


def _parse_line(
    line: str, include_chords: bool, include_translation: bool
) -> list[SongElement] | None:
    """Return the elements of one physical line, or None to drop the line."""
    m = TRANSLATION_RE.match(line)
    if m:
        prefix, translation, suffix = m.groups()
        if not include_translation and not (prefix.strip() or suffix.strip()):
            return None
        parts = []
        # whitespace-only prefix/suffix kept verbatim for the column math of chord lines
        if prefix:
            parts.append(SongElement(SongElementKind.LYRICS, prefix))
        if translation and include_translation:
            parts.append(SongElement(SongElementKind.TRANSLATION, translation))
        if suffix:
            parts.append(SongElement(SongElementKind.LYRICS, suffix))
        return parts

    if is_chords_line(line):
        return [SongElement(SongElementKind.CHORDS, line)] if include_chords else None

    if not line:
        return []
    return [SongElement(SongElementKind.LYRICS, line)]


def _copyright_elements(song: Song) -> list[SongElement]:
    labelled = [
        (LABEL_MUSIC, song.composer),
        (LABEL_TEXT, song.author_text),
        (LABEL_TRANSLATION, song.author_translation),
        (LABEL_PUBLISHER, song.publisher),
        ("", song.additional_copyright_notes),
    ]
    return [
        SongElement(SongElementKind.COPYRIGHT, label + value)
        for label, value in labelled
        if value and value.strip()
    ]


def _new_line() -> SongElement:
    return SongElement(SongElementKind.NEW_LINE, "\n")


def _space_ratio(line: str) -> float:
    if not line:
        return 0.0
    return line.count(" ") / len(line)
