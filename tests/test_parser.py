from songsheet.models import Song, SongElement, SongElementKind
from songsheet.parser import (
    LABEL_MUSIC,
    LABEL_PUBLISHER,
    LABEL_TEXT,
    LABEL_TRANSLATION,
    first_lyrics_line,
    has_chords,
    is_chords_line,
    parse,
)

CHORDS = SongElementKind.CHORDS
COPYRIGHT = SongElementKind.COPYRIGHT
LYRICS = SongElementKind.LYRICS
NEW_LINE = SongElementKind.NEW_LINE
TITLE = SongElementKind.TITLE
TRANSLATION = SongElementKind.TRANSLATION

NL = SongElement(NEW_LINE, "\n")
TRAILING_SPACES = " " * 21
WORKED_EXAMPLE = "C D\nfirst line\n[t1]\nE F\nsecond line\n   [t2]" + TRAILING_SPACES


def _song(**kwargs) -> Song:
    defaults = dict(title="title")
    defaults.update(kwargs)
    return Song(**defaults)


def _full_song() -> Song:
    return _song(
        lyrics=WORKED_EXAMPLE,
        composer="composer",
        author_text="author text",
        author_translation="author translation",
        publisher="publisher",
        additional_copyright_notes="additional notes",
    )


def _rejoin(elements) -> str:
    """Concatenate element contents, putting translations back into brackets."""
    return "".join(
        f"[{e.content}]" if e.kind is TRANSLATION else e.content
        for e in elements
        if e.kind not in (TITLE, COPYRIGHT)
    )


# ---------------------------------------------------------------------------
# Worked example
# ---------------------------------------------------------------------------


def test_worked_example_element_order():
    result = parse(_full_song())
    assert result[0] == SongElement(TITLE, "title")
    assert list(result[1:15]) == [
        SongElement(CHORDS, "C D"),
        NL,
        SongElement(LYRICS, "first line"),
        NL,
        SongElement(TRANSLATION, "t1"),
        NL,
        SongElement(CHORDS, "E F"),
        NL,
        SongElement(LYRICS, "second line"),
        NL,
        SongElement(LYRICS, "   "),
        SongElement(TRANSLATION, "t2"),
        SongElement(LYRICS, TRAILING_SPACES),
        NL,
    ]
    # separator between lyrics and copyright
    assert result[15] == NL


def test_worked_example_copyright_block():
    result = parse(_full_song())
    assert list(result[16:]) == [
        SongElement(COPYRIGHT, LABEL_MUSIC + "composer"),
        SongElement(COPYRIGHT, LABEL_TEXT + "author text"),
        SongElement(COPYRIGHT, LABEL_TRANSLATION + "author translation"),
        SongElement(COPYRIGHT, LABEL_PUBLISHER + "publisher"),
        SongElement(COPYRIGHT, "additional notes"),
    ]


def test_rejoined_contents_reconstruct_lyrics():
    result = parse(_full_song())
    assert _rejoin(result) == WORKED_EXAMPLE + "\n\n"


def test_rejoined_contents_keep_blank_and_whitespace_lines():
    lyrics = "one\n\n   \ntwo\n"
    assert _rejoin(parse(_song(lyrics=lyrics))) == lyrics + "\n\n"


# ---------------------------------------------------------------------------
# Empty and blank fields
# ---------------------------------------------------------------------------


def test_empty_lyrics_yield_title_and_separator():
    assert parse(_song(lyrics="")) == (SongElement(TITLE, "title"), NL)


def test_missing_lyrics_and_title():
    assert parse(Song()) == (SongElement(TITLE, ""), NL)


def test_empty_lyrics_with_copyright():
    result = parse(_song(lyrics=None, composer="Bach", publisher="   "))
    assert result == (
        SongElement(TITLE, "title"),
        NL,
        SongElement(COPYRIGHT, LABEL_MUSIC + "Bach"),
    )


def test_copyright_can_be_excluded():
    result = parse(_song(lyrics="la la", composer="Bach"), include_copyright=False)
    assert all(e.kind is not COPYRIGHT for e in result)


def test_title_can_be_excluded():
    result = parse(_song(lyrics="la la"), include_title=False)
    assert result == (SongElement(LYRICS, "la la"), NL, NL)


def test_blank_line_is_lone_newline():
    result = parse(_song(lyrics="a\n\nb"))
    assert [e.kind for e in result] == [TITLE, LYRICS, NEW_LINE, NEW_LINE, LYRICS, NEW_LINE, NEW_LINE]


def test_whitespace_line_kept_as_lyrics():
    result = parse(_song(lyrics="    "))
    assert result[1] == SongElement(LYRICS, "    ")


def test_windows_line_endings():
    result = parse(_song(lyrics="a\r\nb"))
    assert [e.content for e in result if e.kind is LYRICS] == ["a", "b"]


# ---------------------------------------------------------------------------
# Flags
# ---------------------------------------------------------------------------


def test_chord_lines_dropped_without_chords():
    result = parse(_song(lyrics="C D\nfirst line"), include_chords=False)
    assert result == (SongElement(TITLE, "title"), SongElement(LYRICS, "first line"), NL, NL)


def test_translation_lines_dropped_without_translation():
    result = parse(_song(lyrics="first line\n[t1]\n   [t2]   "), include_translation=False)
    assert result == (SongElement(TITLE, "title"), SongElement(LYRICS, "first line"), NL, NL)


def test_mixed_line_keeps_lyrics_without_translation():
    result = parse(_song(lyrics="Hallelujah [Praise the Lord]"), include_translation=False)
    assert result[1:] == (SongElement(LYRICS, "Hallelujah "), NL, NL)


def test_mixed_line_with_translation():
    result = parse(_song(lyrics="Hallelujah [Praise the Lord]"))
    assert result[1:3] == (
        SongElement(LYRICS, "Hallelujah "),
        SongElement(TRANSLATION, "Praise the Lord"),
    )


# ---------------------------------------------------------------------------
# Malformed brackets
# ---------------------------------------------------------------------------


def test_unmatched_opening_bracket_is_lyrics():
    result = parse(_song(lyrics="open [bracket"))
    assert result[1] == SongElement(LYRICS, "open [bracket")


def test_unmatched_closing_bracket_is_lyrics():
    result = parse(_song(lyrics="closing] bracket"))
    assert result[1] == SongElement(LYRICS, "closing] bracket")


def test_greedy_brackets():
    result = parse(_song(lyrics="a [b] c [d] e"))
    assert result[1:4] == (
        SongElement(LYRICS, "a [b] c "),
        SongElement(TRANSLATION, "d"),
        SongElement(LYRICS, " e"),
    )


def test_empty_brackets_yield_no_translation():
    result = parse(_song(lyrics="[]"))
    assert result[1:] == (NL, NL)


# ---------------------------------------------------------------------------
# Chord line detection
# ---------------------------------------------------------------------------


def test_chord_names():
    assert is_chords_line("C D")
    assert is_chords_line("Am7   G/B   Cmaj7  Dsus4")
    assert is_chords_line("  F#m   Bb   Hm   C#m7")
    assert is_chords_line("(G)  Em7 |  D  x2")


def test_mostly_spaces_with_short_capitalised_tokens():
    assert is_chords_line("A     B          X")


def test_lyrics_are_not_chords():
    assert not is_chords_line("first line")
    assert not is_chords_line("A mighty fortress")
    assert not is_chords_line("          indented lyrics")


def test_blank_is_not_chords():
    assert not is_chords_line("")
    assert not is_chords_line("     ")


def test_bracketed_line_is_not_chords():
    assert not is_chords_line("[C]  [D]")


# ---------------------------------------------------------------------------
# first_lyrics_line
# ---------------------------------------------------------------------------


def test_first_lyrics_line_skips_chords_translation_and_blank():
    song = _song(lyrics="\nC  G\n[Amazing grace]\nGroße Gnade\nsecond")
    assert first_lyrics_line(song) == "Große Gnade"


def test_first_lyrics_line_empty():
    assert first_lyrics_line(_song(lyrics=None)) == ""
    assert first_lyrics_line(_song(lyrics="C  G")) == ""


def test_has_chords():
    assert has_chords(parse(Song(lyrics="G  C\nla la")))
    assert not has_chords(parse(Song(lyrics="just words")))
    assert not has_chords(parse(Song(lyrics="G  C\nla la"), include_chords=False))
