"""Error types shared by the parser, the schema and the dispatcher."""

from typing import Optional


class GardenCommandError(Exception):
    """Base class for every error raised by the garden command pipeline."""


class TransportError(GardenCommandError):
    """Network or HTTP failure reaching the language model or the backend."""


class LanguageModelError(GardenCommandError):
    """The language model could not be asked, or answered with a non-success status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ParseError(GardenCommandError):
    """Malformed JSON from a collaborator."""


class BackendError(GardenCommandError):
    """The backend answered a command with a non-success status."""

    def __init__(self, action: str, status_code: int, body: str = ""):
        super().__init__(f"Backend API error for {action}: {status_code} - {body}")
        self.action = action
        self.status_code = status_code
        self.body = body


class SchemaError(GardenCommandError):
    """A payload does not describe a valid bed command."""

    def __init__(self, action: str, message: str):
        super().__init__(message)
        self.action = action


class UnknownAction(SchemaError):
    def __init__(self, action: str):
        super().__init__(action, f"Unknown action: {action}")


class MissingField(SchemaError):
    def __init__(self, action: str, field: str):
        super().__init__(action, f"Missing required field '{field}' for action '{action}'")
        self.field = field


class TypeMismatch(SchemaError):
    def __init__(self, action: str, field: str, detail: str = ""):
        message = f"Field '{field}' of action '{action}' has the wrong type"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(action, message)
        self.field = field
        self.detail = detail


class InvalidValue(SchemaError):
    """Right type, but outside the allowed range (negative grid cell, empty volume)."""

    def __init__(self, action: str, field: str, detail: str = ""):
        message = f"Field '{field}' of action '{action}' is invalid"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(action, message)
        self.field = field
        self.detail = detail
