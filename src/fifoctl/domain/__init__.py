"""Domain layer: value types, coercion, record grammar, and error types.

Pure logic with no I/O. The service layer owns the pipe and the loop.
"""
