# Custom exceptions for tracemark

class TracemarkError(Exception):
    """Base exception for all application-specific errors."""
    pass

class ParserError(TracemarkError):
    """Raised when a file cannot be parsed by tree-sitter."""
    def __init__(self, file_path: str, message: str):
        self.file_path = file_path
        self.message = message
        super().__init__(f"Failed to parse {file_path}: {message}")

class GrammarNotFoundError(TracemarkError):
    """Raised when a required tree-sitter grammar is not found."""
    def __init__(self, language: str, install_command: str):
        self.language = language
        self.install_command = install_command
        super().__init__(
            f"Grammar for '{language}' not found. Install it with: {install_command}"
        )

class ConfigError(TracemarkError):
    """Raised for configuration-related problems."""
    pass


class EditOutOfBoundsError(TracemarkError):
    """Raised when an edit points outside the buffer it is applied to."""

    def __init__(self, offset, buffer_length: int):
        self.offset = offset
        self.buffer_length = buffer_length
        super().__init__(
            f"Edit offset {offset!r} is outside the buffer (length {buffer_length})."
        )


class BackupError(TracemarkError):
    """Raised when source files cannot be backed up or restored."""
    pass
