"""ChordPro formatter.

Renders a :class:`~songsheet.models.Song` to ChordPro (``.cho``) text by
walking its parsed elements.

Element -> ChordPro mapping
---------------------------

+--------------------------------------+------------------------------------+
| Element(s)                           | Output                             |
+======================================+====================================+
| ``TITLE``                            | ``{title: ...}``, followed by      |
|                                      | ``{comment: <chord sequence>}``    |
+--------------------------------------+------------------------------------+
| ``CHORDS`` ``NEW_LINE`` ``LYRICS``   | chords merged inline:              |
|                                      | ``I [D]pulled into Naz[G]areth``   |
+--------------------------------------+------------------------------------+
| ``CHORDS`` not followed by lyrics    | chord-only line: ``[D] [G] [A]``   |
+--------------------------------------+------------------------------------+
| ``TRANSLATION``                      | ``{comment_italic: ...}`` after    |
|                                      | the lyrics of the same line        |
+--------------------------------------+------------------------------------+
| ``COPYRIGHT``                        | ``{comment: ...}``                 |
+--------------------------------------+------------------------------------+

Usage::

    from songsheet.chordpro import ChordProFormatter
    text = ChordProFormatter().render(song)
    Path("output.cho").write_text(text)

    songbook = ChordProFormatter().render_songs(songs, ExportFormat(only_songs_with_chords=True))
"""

import re
from collections.abc import Iterable

from .history import ElementHistory, is_
from .models import ExportFormat, Song, SongElementKind
from .parser import has_chords, parse

CHORD_TOKEN_RE = re.compile(r"\S+")
NEW_SONG = "{new_song}\n"


class ChordProFormatter:
    """Render a :class:`~songsheet.models.Song` to ChordPro text."""

    def render(self, song: Song, export_format: ExportFormat | None = None) -> str:
        """Return ChordPro text for *song*.

        The returned string ends with a single newline and uses Unix line
        endings (``\\n``) throughout.

        With ``only_export_chord_sequence`` set, only the title and the chord
        sequence are written.
        """
        fmt = export_format or ExportFormat()
        history = ElementHistory(
            parse(song, include_chords=fmt.show_chords, include_translation=fmt.show_translation)
        )

        parts: list[str] = []
        lyrics = ""
        translations: list[str] = []
        copyright_started = False

        for element in history:
            kind = element.kind

            if fmt.only_export_chord_sequence and kind is not SongElementKind.TITLE:
                continue

            orphan = _orphan_chords(history)
            if orphan is not None:
                parts.append(" ".join(f"[{name}]" for _, name in extract_chords_with_offsets(orphan)))

            if kind is SongElementKind.TITLE:
                parts.append(f"{{title: {element.content}}}")
                if (fmt.show_chords or fmt.only_export_chord_sequence) and song.clean_chord_sequence:
                    parts.append(f"{{comment: {song.clean_chord_sequence}}}")
                parts.append("")

            elif kind is SongElementKind.LYRICS:
                chords = (
                    history.query()
                    .last_seen(is_(SongElementKind.CHORDS), is_(SongElementKind.NEW_LINE))
                    .end()
                )
                if chords.is_matched():
                    lyrics += merge_chord_lyric_lines(chords.matched_elements[0].content, element.content)
                else:
                    lyrics += element.content

            elif kind is SongElementKind.TRANSLATION:
                translations.append(element.content)

            elif kind is SongElementKind.NEW_LINE:
                line_is_blank = not lyrics.strip() and not translations
                if lyrics.strip():
                    parts.append(lyrics.rstrip())
                parts.extend(f"{{comment_italic: {t}}}" for t in translations)
                if line_is_blank and not _follows_chords(history):
                    parts.append("")
                lyrics = ""
                translations = []

            elif kind is SongElementKind.COPYRIGHT:
                if not copyright_started and parts and parts[-1] != "":
                    parts.append("")
                copyright_started = True
                parts.append(f"{{comment: {element.content}}}")

        return "\n".join(parts).rstrip("\n") + "\n"

    def render_songs(self, songs: Iterable[Song], export_format: ExportFormat | None = None) -> str:
        """Return one ChordPro document for *songs*, separated by ``{new_song}``.

        With ``only_songs_with_chords`` set, songs without a chord line are
        left out.
        """
        fmt = export_format or ExportFormat()
        rendered = [
            self.render(song, fmt)
            for song in songs
            if not fmt.only_songs_with_chords or has_chords(parse(song, include_copyright=False))
        ]
        return NEW_SONG.join(rendered)


# ---------------------------------------------------------------------------
# Chord merging
# ---------------------------------------------------------------------------


def extract_chords_with_offsets(chord_line: str) -> list[tuple[int, str]]:
    """Return ``(column_offset, chord_name)`` pairs from a chord line, left to right."""
    return [(m.start(), m.group()) for m in CHORD_TOKEN_RE.finditer(chord_line)]


def merge_chord_lyric_lines(chord_line: str, lyric_line: str) -> str:
    """Merge a chord line and its lyric line into a single inline ChordPro line.

    Chords are inserted at the column offset they occupied in *chord_line*.  If
    a chord's offset exceeds the length of the lyric line, the lyric line is
    padded with spaces so the chord is appended rather than silently dropped.

    Example::

        chord_line = "  D              G"
        lyric_line = "I pulled into Nazareth"
        result     = "I [D]pulled into Naz[G]areth"
    """
    chords = extract_chords_with_offsets(chord_line)
    if not chords:
        return lyric_line

    result = lyric_line
    inserted = 0  # total characters inserted so far (adjusts all future offsets)

    for offset, name in chords:
        bracket = f"[{name}]"
        pos = offset + inserted
        if pos > len(result):
            result = result.ljust(pos)
        result = result[:pos] + bracket + result[pos:]
        inserted += len(bracket)

    return result


# ---------------------------------------------------------------------------
# History helpers
# ---------------------------------------------------------------------------


def _orphan_chords(history: ElementHistory) -> str | None:
    """Return the chord line before the current element if no lyrics follow it."""
    current = history.current
    if current.kind is SongElementKind.LYRICS:
        return None
    if current.kind is SongElementKind.NEW_LINE:
        query = history.query_including_current().last_seen(
            is_(SongElementKind.CHORDS), is_(SongElementKind.NEW_LINE), is_(SongElementKind.NEW_LINE)
        )
    else:
        query = history.query().last_seen(is_(SongElementKind.CHORDS), is_(SongElementKind.NEW_LINE))
    result = query.end()
    return result.matched_elements[0].content if result.is_matched() else None


def _follows_chords(history: ElementHistory) -> bool:
    """Is the current NEW_LINE the one closing a chord line?"""
    return history.query().last_seen(is_(SongElementKind.CHORDS)).end().is_matched()
