"""Exception hierarchy for fifoctl.

Three families:
- Setup faults: raised at construction or registration time.
- Coercion faults: raised per record while writing a bound field.
- I/O faults: pipe creation, opening, closing, removal, and client writes.

Every exception derives from :class:`FifoError` plus the closest builtin,
so callers can catch either.
"""

from __future__ import annotations


class FifoError(Exception):
    """Base class for all fifoctl errors."""


# --- Setup faults ---


class NotNamedPipeError(FifoError):
    """A file exists at the pipe path but it is not a FIFO."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"fifoctl: {path} is not a named pipe")


class DuplicateRegistrationError(FifoError, ValueError):
    """A command or field name was registered twice."""

    def __init__(self, registry: str, name: str) -> None:
        self.registry = registry
        self.name = name
        super().__init__(f"fifoctl: {registry} {name!r} already registered")


class InvalidNameError(FifoError, ValueError):
    """A command or field name cannot appear as a key on the wire."""

    def __init__(self, registry: str, name: str) -> None:
        self.registry = registry
        self.name = name
        super().__init__(f"fifoctl: invalid {registry} name {name!r}")


class InvalidBindFieldError(FifoError, TypeError):
    """bind_field() received something that is not a bindable destination."""

    def __init__(self, destination: object) -> None:
        self.destination = destination
        if destination is None:
            msg = "fifoctl: bind_field(None)"
        else:
            msg = f"fifoctl: bind_field(non-destination {type(destination).__name__})"
        super().__init__(msg)


# --- Coercion faults ---


class BindTypeError(FifoError, ValueError):
    """A value that was not appropriate for a destination type.

    Attributes:
        value: Description of the offending value, e.g. ``"number 300"``.
        type_name: Display name of the destination type, e.g. ``"int8"``.
        struct: Name of the class owning the destination, if any.
        field: Name of the field holding the destination, if any.
        reason: Optional short explanation (overflow, malformed array, ...).
    """

    def __init__(
        self,
        value: str,
        type_name: str,
        *,
        struct: str = "",
        field: str = "",
        reason: str = "",
    ) -> None:
        self.value = value
        self.type_name = type_name
        self.struct = struct
        self.field = field
        self.reason = reason
        super().__init__(self._message())

    def _message(self) -> str:
        if self.struct or self.field:
            target = f"struct field {self.struct}.{self.field}" if self.struct else self.field
            msg = f"fifoctl: cannot bind {self.value} into {target} of type {self.type_name}"
        else:
            msg = f"fifoctl: cannot bind {self.value} into value of type {self.type_name}"
        if self.reason:
            msg = f"{msg} ({self.reason})"
        return msg


# --- I/O faults ---


class PipeIOError(FifoError, OSError):
    """An OS-level failure on the pipe, wrapped with what was being done."""

    def __init__(self, action: str, path: str, cause: OSError | None = None) -> None:
        self.action = action
        self.path = path
        self.cause = cause
        detail = f": {cause.strerror or cause}" if cause is not None else ""
        super().__init__(f"fifoctl: {action} {path}{detail}")
