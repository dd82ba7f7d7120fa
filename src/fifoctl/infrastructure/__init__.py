"""Infrastructure layer: FIFO file handling and the writer client."""

from fifoctl.infrastructure.client import send_record
from fifoctl.infrastructure.fifo import ensure_named_pipe, is_named_pipe, remove_named_pipe

__all__ = ["ensure_named_pipe", "is_named_pipe", "remove_named_pipe", "send_record"]
