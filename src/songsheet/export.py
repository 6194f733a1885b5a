"""PDF songbook export.

Renders songs with ReportLab's canvas, one song per page (or more, for long
songs), followed by a table of contents.  Titles, chord sequences and
copyright lines wrap at the right margin; chord and lyrics lines are never
wrapped, so chords stay above their syllables.  Each parsed element is
dispatched to a handler by its kind:

+-----------------+--------------------------------------------------------+
| Element kind    | Handling                                               |
+=================+========================================================+
| ``TITLE``       | TOC entry + bookmark, title paragraph, chord sequence  |
+-----------------+--------------------------------------------------------+
| ``CHORDS``      | nothing; consumed by the following ``LYRICS`` element  |
+-----------------+--------------------------------------------------------+
| ``LYRICS``      | appended to the current line, below the corrected      |
|                 | chord line if one was seen right before                |
+-----------------+--------------------------------------------------------+
| ``TRANSLATION`` | appended to the current line (if shown)                |
+-----------------+--------------------------------------------------------+
| ``NEW_LINE``    | current line is drawn, a new one begins                |
+-----------------+--------------------------------------------------------+
| ``COPYRIGHT``   | own paragraph, extra space above the first one         |
+-----------------+--------------------------------------------------------+

Usage::

    from songsheet.export import PdfExporter
    from songsheet.models import ExportFormat
    pdf_bytes = PdfExporter().export(ExportFormat(show_chords=False), songs)
    Path("songbook.pdf").write_bytes(pdf_bytes)
"""

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from io import BytesIO
from typing import NamedTuple

from reportlab.lib.pagesizes import A4
from reportlab.lib.utils import simpleSplit
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

from .corrector import ChordSpaceCorrector
from .exceptions import ExportError
from .history import ElementHistory, is_
from .models import ExportFormat, Song, SongElementKind
from .parser import has_chords, parse

logger = logging.getLogger(__name__)


class Font(NamedTuple):
    name: str
    size: float

    def width(self, text: str) -> float:
        return stringWidth(text, self.name, self.size)


TITLE_FONT = Font("Times-Bold", 20)
LYRICS_FONT = Font("Times-Roman", 12)
TRANSLATION_FONT = Font("Times-Italic", 8)
COPYRIGHT_FONT = Font("Times-Italic", 10)
PAGE_NUMBER_FONT = Font("Times-Roman", 10)

PAGE_SIZE = A4
MARGIN_TOP = 50
MARGIN_RIGHT = 50
MARGIN_BOTTOM = 30
MARGIN_LEFT = 30
PAGE_NUMBER_Y = 15
LEADING = 1.2

TITLE_SPACE_AFTER = 15
CHORD_SEQUENCE_INDENT = 30
FIRST_COPYRIGHT_SPACE_BEFORE = 20
TOC_HEADING = "Table of Contents"
TOC_LEADER_GAP = 4


# ---------------------------------------------------------------------------
# Layout primitives
# ---------------------------------------------------------------------------


@dataclass
class _Run:
    """Text in one font.  Line breaks inside the text start a new visual line."""

    text: str
    font: Font


@dataclass
class _Paragraph:
    runs: list[_Run] = field(default_factory=list)
    padding_left: float = 0
    space_before: float = 0
    space_after: float = 0
    # break overlong single-font lines at word boundaries
    wrap: bool = False


@dataclass
class _TocEntry:
    key: str
    title: str
    page_number: int


class _PdfWriter:
    """Draws paragraphs top to bottom, breaking pages and numbering them."""

    def __init__(self, buffer: BytesIO):
        self._canvas = canvas.Canvas(buffer, pagesize=PAGE_SIZE, invariant=1)
        self._width, self._height = PAGE_SIZE
        self._y = self._height - MARGIN_TOP
        self._page_has_content = False

    @property
    def page_number(self) -> int:
        return self._canvas.getPageNumber()

    @property
    def right_edge(self) -> float:
        return self._width - MARGIN_RIGHT

    def bookmark(self, key: str, title: str) -> None:
        self._canvas.bookmarkPage(key, fit="FitH", top=self._y)
        self._canvas.addOutlineEntry(title, key, level=0)

    def draw_paragraph(self, paragraph: _Paragraph) -> None:
        # an empty paragraph takes no space; blank lines carry an empty run
        if not paragraph.runs:
            return
        if self._page_has_content:
            self._y -= paragraph.space_before
        lines = _visual_lines(paragraph.runs)
        if paragraph.wrap:
            lines = _wrapped(lines, self.right_edge - MARGIN_LEFT - paragraph.padding_left)
        for line in lines:
            self._advance(LEADING * max((run.font.size for run in line), default=LYRICS_FONT.size))
            x = MARGIN_LEFT + paragraph.padding_left
            for run in line:
                self._canvas.setFont(run.font.name, run.font.size)
                self._canvas.drawString(x, self._y, run.text)
                x += run.font.width(run.text)
        self._y -= paragraph.space_after

    def draw_toc_entry(self, entry: _TocEntry) -> None:
        font = LYRICS_FONT
        number = str(entry.page_number)
        title_width = self.right_edge - MARGIN_LEFT - font.width(number) - 2 * TOC_LEADER_GAP
        title_lines = simpleSplit(entry.title, font.name, font.size, title_width) or [""]

        for title_line in title_lines:
            self._advance(LEADING * font.size)
            self._canvas.setFont(font.name, font.size)
            self._canvas.drawString(MARGIN_LEFT, self._y, title_line)
            self._canvas.linkAbsolute(
                entry.title, entry.key, (MARGIN_LEFT, self._y - 2, self.right_edge, self._y + font.size)
            )

        # page number and leader on the last line of the title
        self._canvas.drawRightString(self.right_edge, self._y, number)
        leader_start = MARGIN_LEFT + font.width(title_lines[-1]) + TOC_LEADER_GAP
        leader_end = self.right_edge - font.width(number) - TOC_LEADER_GAP
        if leader_end > leader_start:
            self._canvas.setDash(1, 3)
            self._canvas.line(leader_start, self._y, leader_end, self._y)
            self._canvas.setDash([], 0)

    def page_break(self) -> None:
        if self._page_has_content:
            self._finish_page()

    def save(self) -> None:
        self.page_break()
        self._canvas.save()

    def _advance(self, height: float) -> None:
        if self._page_has_content and self._y - height < MARGIN_BOTTOM:
            self._finish_page()
        self._y -= height
        self._page_has_content = True

    def _finish_page(self) -> None:
        self._canvas.setFont(PAGE_NUMBER_FONT.name, PAGE_NUMBER_FONT.size)
        self._canvas.drawCentredString(self._width / 2, PAGE_NUMBER_Y, f"- {self.page_number} -")
        self._canvas.showPage()
        self._y = self._height - MARGIN_TOP
        self._page_has_content = False


def _visual_lines(runs: list[_Run]) -> list[list[_Run]]:
    lines: list[list[_Run]] = [[]]
    for run in runs:
        for i, part in enumerate(run.text.split("\n")):
            if i > 0:
                lines.append([])
            if part:
                lines[-1].append(_Run(part, run.font))
    return lines


def _wrapped(lines: list[list[_Run]], max_width: float) -> list[list[_Run]]:
    result: list[list[_Run]] = []
    for line in lines:
        if len(line) != 1 or line[0].font.width(line[0].text) <= max_width:
            result.append(line)
            continue
        run = line[0]
        parts = simpleSplit(run.text, run.font.name, run.font.size, max_width)
        result.extend([_Run(part, run.font)] for part in parts)
    return result


# ---------------------------------------------------------------------------
# Exporter
# ---------------------------------------------------------------------------


@dataclass
class _ExportInProgress:
    export_format: ExportFormat
    pdf: _PdfWriter
    toc: list[_TocEntry] = field(default_factory=list)
    # only used in the song body, not for title or copyright
    current_line: _Paragraph | None = None

    def current_line_or_new(self) -> _Paragraph:
        if self.current_line is None:
            self.current_line = _Paragraph()
        return self.current_line


_Handler = Callable[[_ExportInProgress, Song, ElementHistory], None]


class PdfExporter:
    """Render songs to a PDF songbook."""

    def __init__(self) -> None:
        self._corrector = ChordSpaceCorrector(LYRICS_FONT.width)
        self._handlers: dict[SongElementKind, _Handler] = {
            SongElementKind.TITLE: self._handle_title,
            # chords are drawn by the following LYRICS element
            SongElementKind.CHORDS: self._handle_chords,
            SongElementKind.LYRICS: self._handle_lyrics,
            SongElementKind.TRANSLATION: self._handle_translation,
            SongElementKind.NEW_LINE: self._handle_new_line,
            SongElementKind.COPYRIGHT: self._handle_copyright,
        }

    def export(self, export_format: ExportFormat, songs: Iterable[Song]) -> bytes:
        """Return the PDF document for *songs*.

        Raises ExportError if the document cannot be built; nothing is
        returned in that case.
        """
        buffer = BytesIO()
        try:
            pdf = _PdfWriter(buffer)
            progress = _ExportInProgress(export_format, pdf)
            for song in songs:
                self._export_song(progress, song)
            self._append_table_of_contents(progress)
            pdf.save()
        except Exception as exc:
            raise ExportError(str(exc) or type(exc).__name__) from exc
        logger.info("Exported %d songs on %d pages", len(progress.toc), pdf.page_number - 1)
        return buffer.getvalue()

    def _export_song(self, progress: _ExportInProgress, song: Song) -> None:
        fmt = progress.export_format
        elements = parse(
            song,
            include_chords=fmt.show_chords or fmt.only_songs_with_chords,
            include_translation=fmt.show_translation,
        )
        if fmt.only_songs_with_chords and not has_chords(elements):
            logger.debug("Skipping %r: no chords", song.title)
            return

        progress.current_line = None
        history = ElementHistory(elements)
        for element in history:
            if fmt.only_export_chord_sequence and element.kind is not SongElementKind.TITLE:
                continue
            self._handlers[element.kind](progress, song, history)

        progress.pdf.page_break()

    # --- Element handlers ---

    def _handle_title(self, progress: _ExportInProgress, song: Song, history: ElementHistory) -> None:
        title = history.current.content
        key = f"song-{len(progress.toc) + 1}"
        progress.toc.append(_TocEntry(key, title, progress.pdf.page_number))
        progress.pdf.bookmark(key, title)
        progress.pdf.draw_paragraph(
            _Paragraph(runs=[_Run(title, TITLE_FONT)], space_after=TITLE_SPACE_AFTER, wrap=True)
        )

        fmt = progress.export_format
        chord_sequence = song.clean_chord_sequence
        if (fmt.show_chords or fmt.only_export_chord_sequence) and chord_sequence:
            # chord sequence directly after the title
            progress.pdf.draw_paragraph(
                _Paragraph(
                    runs=[_Run(chord_sequence, LYRICS_FONT)],
                    padding_left=CHORD_SEQUENCE_INDENT,
                    space_after=2 * LEADING * LYRICS_FONT.size,
                    wrap=True,
                )
            )

    def _handle_chords(self, progress: _ExportInProgress, song: Song, history: ElementHistory) -> None:
        pass

    def _handle_lyrics(self, progress: _ExportInProgress, song: Song, history: ElementHistory) -> None:
        lyrics = history.current.content
        chords_line = ""
        result = (
            history.query()
            .without(SongElementKind.NEW_LINE)
            .last_seen(is_(SongElementKind.CHORDS))
            .end()
        )
        if result.is_matched() and progress.export_format.show_chords:
            chords_line = self._corrector.correct(result.matched_elements[0].content, lyrics) + "\n"
        progress.current_line_or_new().runs.append(_Run(chords_line + lyrics, LYRICS_FONT))

    def _handle_translation(self, progress: _ExportInProgress, song: Song, history: ElementHistory) -> None:
        if progress.export_format.show_translation:
            progress.current_line_or_new().runs.append(
                _Run(history.current.content, TRANSLATION_FONT)
            )

    def _handle_new_line(self, progress: _ExportInProgress, song: Song, history: ElementHistory) -> None:
        if progress.current_line is not None:
            if history.query().last_seen(is_(SongElementKind.NEW_LINE)).end().is_matched():
                # empty line: an empty paragraph would take no space at all
                progress.current_line.runs.append(_Run("", LYRICS_FONT))
            progress.pdf.draw_paragraph(progress.current_line)
        progress.current_line = _Paragraph()

    def _handle_copyright(self, progress: _ExportInProgress, song: Song, history: ElementHistory) -> None:
        first = not (
            history.query()
            .without(SongElementKind.NEW_LINE)
            .last_seen(is_(SongElementKind.COPYRIGHT))
            .end()
            .is_matched()
        )
        progress.pdf.draw_paragraph(
            _Paragraph(
                runs=[_Run(history.current.content, COPYRIGHT_FONT)],
                space_before=FIRST_COPYRIGHT_SPACE_BEFORE if first else 0,
                wrap=True,
            )
        )

    # --- Table of contents ---

    def _append_table_of_contents(self, progress: _ExportInProgress) -> None:
        pdf = progress.pdf
        pdf.draw_paragraph(
            _Paragraph(runs=[_Run(TOC_HEADING, TITLE_FONT)], space_after=TITLE_SPACE_AFTER, wrap=True)
        )
        for entry in progress.toc:
            pdf.draw_toc_entry(entry)
