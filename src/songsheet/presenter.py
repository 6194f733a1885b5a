"""On-screen presentation of a song.

Groups the parsed elements into addressable parts the presenter can scroll
to: the title, one part per stanza (stanzas are separated by blank lines)
and the copyright block.  Chord lines are corrected for the font the
lyrics are shown in, using the width function of the display.
"""

from dataclasses import dataclass, field

from .corrector import ChordSpaceCorrector, MeasureWidth
from .history import ElementHistory, is_
from .models import Song, SongElementKind
from .parser import parse


@dataclass(frozen=True)
class Segment:
    kind: SongElementKind
    text: str


@dataclass
class PresentedLine:
    """One visual line: lyrics and translation segments plus chords above them."""

    segments: list[Segment] = field(default_factory=list)
    chords: str | None = None

    @property
    def text(self) -> str:
        return "".join(s.text for s in self.segments)

    @property
    def is_blank(self) -> bool:
        return not self.text.strip() and not self.chords


@dataclass
class Part:
    lines: list[PresentedLine] = field(default_factory=list)


def render_presentation(
    song: Song,
    measure_width: MeasureWidth,
    show_title: bool = True,
    show_chords: bool = False,
    show_translation: bool = True,
) -> list[Part]:
    """Return the parts of *song* as shown on screen."""
    corrector = ChordSpaceCorrector(measure_width)
    history = ElementHistory(
        parse(
            song,
            include_chords=show_chords,
            include_translation=show_translation,
            include_title=show_title,
        )
    )

    parts: list[Part] = []
    stanza = Part()
    copyright_part = Part()
    line: PresentedLine | None = None

    def close_stanza() -> None:
        nonlocal stanza
        if stanza.lines:
            parts.append(stanza)
            stanza = Part()

    for element in history:
        kind = element.kind

        if kind is SongElementKind.TITLE:
            parts.append(Part([PresentedLine([Segment(kind, element.content)])]))

        elif kind in (SongElementKind.LYRICS, SongElementKind.TRANSLATION):
            if line is None:
                line = PresentedLine()
                if kind is SongElementKind.LYRICS:
                    result = (
                        history.query()
                        .without(SongElementKind.NEW_LINE)
                        .last_seen(is_(SongElementKind.CHORDS))
                        .end()
                    )
                    if result.is_matched():
                        line.chords = corrector.correct(
                            result.matched_elements[0].content, element.content
                        )
            line.segments.append(Segment(kind, element.content))

        elif kind is SongElementKind.NEW_LINE:
            # chord line without lyrics below it
            orphan = (
                history.query_including_current()
                .last_seen(
                    is_(SongElementKind.CHORDS),
                    is_(SongElementKind.NEW_LINE),
                    is_(SongElementKind.NEW_LINE),
                )
                .end()
            )
            if orphan.is_matched():
                stanza.lines.append(
                    PresentedLine(chords=corrector.correct(orphan.matched_elements[0].content, ""))
                )

            if line is not None and not line.is_blank:
                stanza.lines.append(line)
            elif line is not None or history.query().last_seen(is_(SongElementKind.NEW_LINE)).end():
                close_stanza()
            line = None

        elif kind is SongElementKind.COPYRIGHT:
            close_stanza()
            copyright_part.lines.append(PresentedLine([Segment(kind, element.content)]))

    close_stanza()
    if copyright_part.lines:
        parts.append(copyright_part)
    return parts
