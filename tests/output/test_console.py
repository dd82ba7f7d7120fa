"""Tests for the Rich console factory."""

from __future__ import annotations

from fifoctl.output.console import FIFO_THEME, create_console, get_output


class TestCreateConsole:
    def test_renders_to_buffer(self) -> None:
        console = create_console()
        console.print("hello")
        assert get_output(console) == "hello"

    def test_theme_styles_resolve(self) -> None:
        console = create_console()
        console.print("[fifo.ok]OK[/] [fifo.key]name[/]")
        assert get_output(console) == "OK name"

    def test_theme_has_result_styles(self) -> None:
        for style in ("fifo.ok", "fifo.error", "fifo.ignored", "fifo.op", "fifo.key"):
            assert style in FIFO_THEME.styles

    def test_width(self) -> None:
        console = create_console(width=40)
        assert console.width == 40
