"""Chord space correction for proportional fonts.

Chord lines are written for a monospace font: the chord standing in column
12 belongs to the syllable in column 12 of the lyrics line below.  Rendered
in a proportional font the columns drift apart.  The corrector re-spaces the
chord line so each chord starts at the rendered width of the lyrics up to
its original column::

    chords = "A       B            C"
    lyrics = "This is a Test which only should ..."
    corrected = ChordSpaceCorrector(font_width).correct(chords, lyrics)

The result is visually, not textually, equivalent: the number of spaces
between two chords grows or shrinks with the font metrics.
"""

import re
from collections.abc import Callable

from .exceptions import ChordCorrectionError

# Maximal run of non-whitespace characters in a chord line
CHORD_TOKEN_RE = re.compile(r"\S+")

MeasureWidth = Callable[[str], float]


class ChordSpaceCorrector:
    """Re-space chord lines using a text-width function.

    Args:
        measure_width: Rendered width of a string, e.g. in points or pixels.
                       Must not decrease when the string grows.
    """

    def __init__(self, measure_width: MeasureWidth):
        self._measure_width = measure_width

    def correct(self, chord_line: str, text_line: str) -> str:
        """Return *chord_line* re-spaced to fit *text_line* in the measured font."""
        try:
            return self._correct(chord_line, text_line)
        except Exception as exc:
            raise ChordCorrectionError(chord_line, text_line) from exc

    def _correct(self, chord_line: str, text_line: str) -> str:
        result = ""
        for m in CHORD_TOKEN_RE.finditer(chord_line):
            target = self._measure_width(_text_up_to(text_line, m.start()))
            result += " " * self._padding(result, target) + m.group()
        return result

    def _padding(self, emitted: str, target: float) -> int:
        """Smallest number of spaces after *emitted* reaching *target* width.

        At least one space separates two chords.  Stops early if another
        space does not widen the measurement.
        """
        padding = 1 if emitted else 0
        width = self._measure_width(emitted + " " * padding)
        while width < target:
            wider = self._measure_width(emitted + " " * (padding + 1))
            if wider <= width:
                break
            padding += 1
            width = wider
        return padding


def correct_chord_spaces(chord_line: str, text_line: str, measure_width: MeasureWidth) -> str:
    """Functional shortcut for :meth:`ChordSpaceCorrector.correct`."""
    return ChordSpaceCorrector(measure_width).correct(chord_line, text_line)


def _text_up_to(text_line: str, column: int) -> str:
    # chords beyond the end of the lyrics keep their distance in spaces
    return text_line[:column].ljust(column)
