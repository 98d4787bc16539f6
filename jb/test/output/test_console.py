"""Tests for jb.output.console module."""

from __future__ import annotations

import threading

import pytest

from jb.output.console import MockConsole, RichConsole, Style


class TestStyle:
    def test_str_conversion(self) -> None:
        assert str(Style.SUCCESS) == "success"
        assert str(Style.DIM) == "dim"

    def test_all_styles_exist(self) -> None:
        expected = {"DEFAULT", "SUCCESS", "ERROR", "WARNING", "INFO", "DIM", "BOLD", "HEADER"}
        assert {s.name for s in Style} == expected


class TestMockConsole:
    """Test MockConsole for testing purposes."""

    def test_print_captures_message(self) -> None:
        console = MockConsole()
        console.print("hello")
        assert console.outputs[0].message == "hello"
        assert console.outputs[0].style == Style.DEFAULT

    def test_prefixed_helpers(self) -> None:
        console = MockConsole()
        console.success("built")
        console.error("failed")
        console.warning("careful")
        console.info("fyi")
        assert console.messages == ["OK built", "error: failed", "warning: careful", "info: fyi"]
        assert console.has_error()

    def test_header_and_raw(self) -> None:
        console = MockConsole()
        console.header("Deploying bundle")
        console.raw("digraph {\n}\n")
        assert console.outputs[0].style == Style.HEADER
        assert console.text.endswith("digraph {\n}\n")

    def test_find(self) -> None:
        console = MockConsole()
        console.print("[a] uploaded ch:a-1")
        console.print("[b] uploaded ch:b-2")
        assert len(console.find("uploaded")) == 2
        assert console.find("[c]") == []

    def test_thread_safe(self) -> None:
        console = MockConsole()

        def spam(n: int) -> None:
            for i in range(200):
                console.print(f"{n}-{i}")

        threads = [threading.Thread(target=spam, args=(n,)) for n in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(console.outputs) == 800


class TestRichConsole:
    def test_markup_is_escaped(self, capsys: pytest.CaptureFixture[str]) -> None:
        console = RichConsole()
        console.error("[web] build failed")
        console.print("[db] plain", Style.DIM)
        out = capsys.readouterr().out
        assert "[web] build failed" in out
        assert "[db] plain" in out

    def test_raw_is_verbatim(self, capsys: pytest.CaptureFixture[str]) -> None:
        RichConsole().raw('digraph {\n    0 [ label = "a" ]\n}\n')
        assert capsys.readouterr().out == 'digraph {\n    0 [ label = "a" ]\n}\n'

