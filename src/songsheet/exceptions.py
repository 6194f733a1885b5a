class SongsheetError(Exception):
    """Base exception for songsheet."""


class ChordCorrectionError(SongsheetError):
    """Raised when the width measurement fails while correcting a chord line."""

    def __init__(self, chord_line: str, text_line: str):
        self.chord_line = chord_line
        self.text_line = text_line
        super().__init__(
            f"Problem while correcting chord spaces - chord line: {chord_line!r} - lyrics: {text_line!r}"
        )


class ExportError(SongsheetError):
    """Raised when a document cannot be built. No partial output is returned."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Error while creating document: {reason}")


class SongFileError(SongsheetError):
    """Raised when a song file cannot be read or has an unexpected shape."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot read songs from {path}: {reason}")
