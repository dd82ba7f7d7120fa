"""fifoctl: named-pipe control channel for commands and typed fields."""

from fifoctl.domain.errors import (
    BindTypeError,
    DuplicateRegistrationError,
    FifoError,
    InvalidBindFieldError,
    InvalidNameError,
    NotNamedPipeError,
    PipeIOError,
)
from fifoctl.domain.kinds import Var, attribute
from fifoctl.services.server import Server

__version__ = "0.3.0"

__all__ = [
    "BindTypeError",
    "DuplicateRegistrationError",
    "FifoError",
    "InvalidBindFieldError",
    "InvalidNameError",
    "NotNamedPipeError",
    "PipeIOError",
    "Server",
    "Var",
    "__version__",
    "attribute",
]
