from dataclasses import dataclass
from enum import Enum, auto


class SongElementKind(Enum):
    TITLE = auto()  # always exactly one line
    CHORDS = auto()  # a chord line, not necessarily a whole line (see NEW_LINE)
    LYRICS = auto()  # a lyrics fragment, not necessarily a whole line
    TRANSLATION = auto()  # a translation fragment, not necessarily a whole line
    NEW_LINE = auto()  # line break between CHORDS, LYRICS and TRANSLATION elements only
    COPYRIGHT = auto()  # always a whole line


@dataclass(frozen=True)
class SongElement:
    """One classified fragment of a song, e.g. one lyrics line or the title.

    Example: ``SongElement(SongElementKind.CHORDS, "C     F   G")``
    """

    kind: SongElementKind
    content: str | None = None

    @property
    def is_empty(self) -> bool:
        return not self.content


@dataclass
class Song:
    """Raw field values of a song as handed over by the persistence layer."""

    title: str | None = None
    lyrics: str | None = None
    composer: str | None = None
    author_text: str | None = None
    author_translation: str | None = None
    publisher: str | None = None
    additional_copyright_notes: str | None = None
    chord_sequence: str | None = None  # e.g. "G  D  Em  C", independent of the chord lines
    uuid: str = ""

    @property
    def clean_chord_sequence(self) -> str | None:
        """The chord sequence without leading and trailing whitespace."""
        if self.chord_sequence is None:
            return None
        return self.chord_sequence.strip()


@dataclass(frozen=True)
class ExportFormat:
    """Which parts of the songs an export contains."""

    show_translation: bool = True
    show_chords: bool = True
    only_songs_with_chords: bool = False
    only_export_chord_sequence: bool = False
