import io
import re

import pytest
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen.canvas import Canvas

from songsheet.exceptions import ExportError
from songsheet.export import COPYRIGHT_FONT, MARGIN_RIGHT, PAGE_SIZE, PdfExporter
from songsheet.models import ExportFormat, Song

PdfReader = pytest.importorskip("pypdf").PdfReader

CHORDS_1 = re.compile(r"A +B +X")
CHORDS_2 = re.compile(r"A +B +Y")
CHORD_SEQUENCE = re.compile(r"G +D +Em +C")


def _songs() -> list[Song]:
    return [
        Song(
            uuid="abcde-10000",
            title="Test-Song 1",
            lyrics="A     B          X\nLyrics of Song 1\n[Translation of Song 1]",
            composer="Composer of Song 1",
        ),
        Song(
            uuid="abcde-20000",
            title="Test-Song 2",
            lyrics="[Intro of a part of Song 2]\nA     B          Y\nLyrics of Song 2",
            chord_sequence="  G  D  Em  C  ",
        ),
        Song(
            uuid="abcde-30000",
            title="Test-Song 3",
            lyrics="Lyrics of Song 3\n\nSecond paragraph of Song 3",
        ),
    ]


def _pages(pdf_bytes: bytes) -> list[str]:
    reader = PdfReader(io.BytesIO(pdf_bytes))
    return [page.extract_text() for page in reader.pages]


def _export(**kwargs) -> list[str]:
    return _pages(PdfExporter().export(ExportFormat(**kwargs), _songs()))


# ---------------------------------------------------------------------------
# Full export
# ---------------------------------------------------------------------------


def test_export_all():
    pages = _export(show_translation=True, show_chords=True)
    assert len(pages) == 4

    assert "Lyrics of Song 1" in pages[0]
    assert "Translation of Song 1" in pages[0]
    assert CHORDS_1.search(pages[0])
    assert "- 1 -" in pages[0]

    assert "Lyrics of Song 2" in pages[1]
    assert "Intro of a part of Song 2" in pages[1]
    assert CHORDS_2.search(pages[1])
    assert "- 2 -" in pages[1]

    assert "Lyrics of Song 3" in pages[2]
    assert "Second paragraph of Song 3" in pages[2]
    assert "- 3 -" in pages[2]


def test_export_is_a_pdf():
    pdf_bytes = PdfExporter().export(ExportFormat(), _songs())
    assert pdf_bytes.startswith(b"%PDF")


def test_copyright_and_chord_sequence():
    pages = _export()
    assert "Music: Composer of Song 1" in pages[0]
    assert CHORD_SEQUENCE.search(pages[1])


def test_table_of_contents():
    pages = _export()
    toc = pages[3]
    assert "Table of Contents" in toc
    for number, title in enumerate(["Test-Song 1", "Test-Song 2", "Test-Song 3"], start=1):
        assert re.search(rf"{re.escape(title)}\s*{number}", toc)


def test_table_of_contents_is_linked():
    reader = PdfReader(io.BytesIO(PdfExporter().export(ExportFormat(), _songs())))
    annotations = reader.pages[3]["/Annots"]
    assert len(annotations) == 3


# ---------------------------------------------------------------------------
# Export formats
# ---------------------------------------------------------------------------


def test_export_only_with_chords():
    pages = _export(only_songs_with_chords=True)
    assert len(pages) == 3
    assert "Lyrics of Song 1" in pages[0]
    assert "Lyrics of Song 2" in pages[1]
    assert "Test-Song 3" not in pages[2]


def test_export_without_chords():
    pages = _export(show_translation=True, show_chords=False)
    assert len(pages) == 4
    assert "Lyrics of Song 1" in pages[0]
    assert "Translation of Song 1" in pages[0]
    assert not CHORDS_1.search(pages[0])
    assert "Intro of a part of Song 2" in pages[1]
    assert not CHORDS_2.search(pages[1])
    assert not CHORD_SEQUENCE.search(pages[1])


def test_export_without_chords_and_translation():
    pages = _export(show_translation=False, show_chords=False)
    assert len(pages) == 4
    assert "Lyrics of Song 1" in pages[0]
    assert "Translation of Song 1" not in pages[0]
    assert not CHORDS_1.search(pages[0])
    assert "Lyrics of Song 2" in pages[1]
    assert "Intro of a part of Song 2" not in pages[1]


def test_export_chord_sequence_only():
    pages = _export(only_export_chord_sequence=True)
    assert "Test-Song 2" in pages[1]
    assert CHORD_SEQUENCE.search(pages[1])
    assert "Lyrics of Song 2" not in pages[1]


def test_long_song_spans_pages():
    song = Song(title="Long", lyrics="\n".join(f"line {i}" for i in range(120)))
    pages = _pages(PdfExporter().export(ExportFormat(), [song]))
    assert len(pages) > 2
    assert "line 0" in pages[0]
    assert "line 119" in pages[-2]


def test_no_songs_only_table_of_contents():
    pages = _pages(PdfExporter().export(ExportFormat(), []))
    assert len(pages) == 1
    assert "Table of Contents" in pages[0]


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------


def test_lower_level_failure_raises_export_error(monkeypatch):
    def broken_draw(self, paragraph):
        raise RuntimeError("canvas exploded")

    monkeypatch.setattr("songsheet.export._PdfWriter.draw_paragraph", broken_draw)
    with pytest.raises(ExportError, match="canvas exploded"):
        PdfExporter().export(ExportFormat(), _songs())


# ---------------------------------------------------------------------------
# Wrapping
# ---------------------------------------------------------------------------


def test_long_lines_wrap_at_right_margin(monkeypatch):
    drawn = []
    draw_string = Canvas.drawString

    def recording_draw_string(self, x, y, text, *args, **kwargs):
        drawn.append((x, text, self._fontname, self._fontsize))
        return draw_string(self, x, y, text, *args, **kwargs)

    monkeypatch.setattr(Canvas, "drawString", recording_draw_string)
    song = Song(
        title="A very long title that does not fit on a single line of the page",
        lyrics="Short lyrics",
        chord_sequence="G  D  Em  C  " * 20,
        additional_copyright_notes="All rights reserved. " * 12,
    )
    PdfExporter().export(ExportFormat(), [song])

    right_edge = PAGE_SIZE[0] - MARGIN_RIGHT
    for x, text, font_name, font_size in drawn:
        assert x + stringWidth(text, font_name, font_size) <= right_edge + 0.01, text

    copyright_text = " ".join(
        text for _, text, name, size in drawn if (name, size) == (COPYRIGHT_FONT.name, COPYRIGHT_FONT.size)
    )
    assert copyright_text.count("All rights reserved.") == 12
    assert sum(text.count("Em") for _, text, _, _ in drawn) == 20

