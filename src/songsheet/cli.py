import dataclasses
import json
import logging
import re
import sys
from pathlib import Path

import click

from .chordpro import ChordProFormatter
from .exceptions import ExportError, SongFileError
from .export import PdfExporter
from .models import ExportFormat, Song
from .parser import parse

logger = logging.getLogger(__name__)

_SONG_FIELDS = {f.name for f in dataclasses.fields(Song)}


def _slugify(text: str) -> str:
    """Convert a string to a lowercase hyphenated slug suitable for filenames."""
    text = text.lower()
    text = re.sub(r"[^\w\s-]", "", text)   # drop punctuation
    text = re.sub(r"[\s_]+", "-", text)     # spaces/underscores → hyphens
    text = re.sub(r"-{2,}", "-", text)      # collapse multiple hyphens
    return text.strip("-")


def _default_filename(songs_file: str, output_format: str) -> str:
    extension = "pdf" if output_format == "pdf" else "cho"
    return f"{_slugify(Path(songs_file).stem) or 'songbook'}.{extension}"


def load_songs(path: str) -> list[Song]:
    """Read songs from a JSON file holding one object or a list of objects.

    Object keys are :class:`~songsheet.models.Song` field names.

    Raises SongFileError if the file cannot be read, has another shape or
    holds a field value that is not a string.
    """
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except OSError as exc:
        raise SongFileError(path, exc.strerror or str(exc)) from exc
    except json.JSONDecodeError as exc:
        raise SongFileError(path, f"invalid JSON ({exc.msg}, line {exc.lineno})") from exc

    if isinstance(data, dict):
        data = [data]
    if not isinstance(data, list):
        raise SongFileError(path, "expected a song object or a list of song objects")

    songs = []
    for index, entry in enumerate(data):
        if not isinstance(entry, dict):
            raise SongFileError(path, f"entry {index} is not an object")
        unknown = set(entry) - _SONG_FIELDS
        if unknown:
            raise SongFileError(path, f"entry {index} has unknown fields: {', '.join(sorted(unknown))}")
        for name, value in entry.items():
            # only uuid has a non-null default
            if not isinstance(value, str) and (value is not None or name == "uuid"):
                raise SongFileError(path, f"entry {index} field {name!r} must be a string")
        songs.append(Song(**entry))
    logger.debug("Loaded %d songs from %s", len(songs), path)
    return songs


def _load_or_exit(path: str) -> list[Song]:
    try:
        return load_songs(path)
    except SongFileError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)


@click.group()
@click.option("-v", "--verbose", is_flag=True, default=False, help="Log progress to stderr.")
def main(verbose: bool) -> None:
    """Render song texts with chords and translations as songbooks."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@main.command("export")
@click.argument("songs_file")
@click.option("-o", "--output", "output_path", default=None, metavar="PATH",
              help="Output file path (default: <songs-file>.pdf or .cho)")
@click.option("--format", "output_format", type=click.Choice(["pdf", "chordpro"]),
              default="pdf", show_default=True, help="Output format.")
@click.option("--stdout", is_flag=True, default=False,
              help="Print ChordPro to stdout instead of writing a file.")
@click.option("--no-chords", is_flag=True, default=False, help="Leave out chord lines.")
@click.option("--no-translation", is_flag=True, default=False, help="Leave out translations.")
@click.option("--only-with-chords", is_flag=True, default=False,
              help="Skip songs without chord lines.")
@click.option("--chord-sequence-only", is_flag=True, default=False,
              help="Only export title and chord sequence of each song.")
def export_command(
    songs_file: str,
    output_path: str | None,
    output_format: str,
    stdout: bool,
    no_chords: bool,
    no_translation: bool,
    only_with_chords: bool,
    chord_sequence_only: bool,
) -> None:
    """Export the songs in SONGS_FILE (JSON) as PDF songbook or ChordPro."""
    songs = _load_or_exit(songs_file)
    export_format = ExportFormat(
        show_translation=not no_translation,
        show_chords=not no_chords,
        only_songs_with_chords=only_with_chords,
        only_export_chord_sequence=chord_sequence_only,
    )

    # --- Render ---
    if output_format == "chordpro":
        text = ChordProFormatter().render_songs(songs, export_format)
        if stdout:
            click.echo(text, nl=False)
            return
        dest = Path(output_path or _default_filename(songs_file, output_format))
        dest.write_text(text, encoding="utf-8")
        click.echo(f"Written to {dest}")
        return

    if stdout:
        click.echo("Error: --stdout is only supported with --format chordpro", err=True)
        sys.exit(1)

    try:
        pdf_bytes = PdfExporter().export(export_format, songs)
    except ExportError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    # --- Output ---
    dest = Path(output_path or _default_filename(songs_file, output_format))
    dest.write_bytes(pdf_bytes)
    click.echo(f"Written to {dest}")


@main.command("parse")
@click.argument("songs_file")
@click.option("--no-chords", is_flag=True, default=False, help="Leave out chord lines.")
@click.option("--no-translation", is_flag=True, default=False, help="Leave out translations.")
def parse_command(songs_file: str, no_chords: bool, no_translation: bool) -> None:
    """Print the elements each song in SONGS_FILE is parsed into."""
    for song in _load_or_exit(songs_file):
        for element in parse(song, include_chords=not no_chords, include_translation=not no_translation):
            click.echo(f"{element.kind.name}\t{element.content!r}")
