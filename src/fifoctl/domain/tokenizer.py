"""Record grammar: one read cycle's text -> one classified record.

Grammar:
- The first whitespace-delimited token is the key.
- If the key token contains ``=``, or the next non-blank character after it
  is ``=``, the record is an assignment; otherwise it is a command.
- Command arguments are whitespace-delimited. A token that starts with ``"``
  runs to the next ``"``; the quotes are dropped and the interior is kept
  verbatim, whitespace included.
- Assignment values drop the whitespace right after ``=`` and keep the rest
  verbatim. A value starting with ``"`` is the quote's interior, exactly;
  anything after the closing quote is discarded.

There is no terminator token: the record ends where the stream ends. A single
trailing line ending (what ``echo`` appends) is dropped by default.
"""

from __future__ import annotations

from fifoctl.domain.records import Assignment, Command, Record

QUOTE = '"'
EQUALS = "="


def strip_line_ending(text: str) -> str:
    """Drop one trailing ``\\n`` or ``\\r\\n``."""
    if text.endswith("\r\n"):
        return text[:-2]
    if text.endswith("\n"):
        return text[:-1]
    return text


class _Scanner:
    """Cursor over a single cycle's text."""

    def __init__(self, text: str) -> None:
        self.text = text
        self.pos = 0

    def at_end(self) -> bool:
        return self.pos >= len(self.text)

    def skip_space(self) -> None:
        while not self.at_end() and self.text[self.pos].isspace():
            self.pos += 1

    def peek_word(self) -> str:
        """The raw non-blank run at the cursor, without consuming it."""
        end = self.pos
        while end < len(self.text) and not self.text[end].isspace():
            end += 1
        return self.text[self.pos : end]

    def next_nonblank_after(self, offset: int) -> str:
        index = offset
        while index < len(self.text) and self.text[index].isspace():
            index += 1
        return self.text[index] if index < len(self.text) else ""

    def token(self) -> str | None:
        """Next whitespace-delimited token, unquoted; ``None`` at end."""
        self.skip_space()
        if self.at_end():
            return None
        if self.text[self.pos] == QUOTE:
            return self._quoted()
        start = self.pos
        while not self.at_end() and not self.text[self.pos].isspace():
            self.pos += 1
        return self.text[start : self.pos]

    def _quoted(self) -> str:
        close = self.text.find(QUOTE, self.pos + 1)
        if close == -1:
            # Unterminated: the rest of the stream is the token.
            token = self.text[self.pos + 1 :]
            self.pos = len(self.text)
            return token
        token = self.text[self.pos + 1 : close]
        self.pos = close + 1
        return token


def _is_assignment(scanner: _Scanner) -> bool:
    word = scanner.peek_word()
    if word.startswith(QUOTE):
        return False
    if EQUALS in word:
        return True
    return scanner.next_nonblank_after(scanner.pos + len(word)) == EQUALS


def _scan_value(raw: str) -> str:
    value = raw.lstrip()
    if not value.startswith(QUOTE):
        return value
    close = value.find(QUOTE, 1)
    return value[1:] if close == -1 else value[1:close]


def _scan_assignment(scanner: _Scanner) -> Assignment | None:
    equals = scanner.text.index(EQUALS, scanner.pos)
    name = scanner.text[scanner.pos : equals].strip()
    if not name:
        return None
    return Assignment(field=name, value=_scan_value(scanner.text[equals + 1 :]))


def _scan_command(scanner: _Scanner) -> Command | None:
    name = scanner.token()
    if not name:
        return None
    args: list[str] = []
    while (arg := scanner.token()) is not None:
        args.append(arg)
    return Command(name=name, args=tuple(args))


def tokenize(text: str, *, strip_newline: bool = True) -> Record | None:
    """Classify one cycle's text as a :class:`Command` or :class:`Assignment`.

    Returns ``None`` when the text holds no key (blank input, ``= value``).
    """
    if strip_newline:
        text = strip_line_ending(text)
    scanner = _Scanner(text)
    scanner.skip_space()
    if scanner.at_end():
        return None
    if _is_assignment(scanner):
        return _scan_assignment(scanner)
    return _scan_command(scanner)
