from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from tools.generate_handler_registrations import main

_HANDLERS = """
from handlerwire import RequestHandler


class EchoHandler(RequestHandler[str, str]):
    async def handle(self, request: str) -> str:
        return request
"""

_DUPLICATE_HANDLERS = """
from handlerwire import RequestHandler


class FirstEcho(RequestHandler[str, str]):
    async def handle(self, request: str) -> str:
        return request


class SecondEcho(RequestHandler[str, str]):
    async def handle(self, request: str) -> str:
        return request
"""


def _write_sources(root: Path, handlers_source: str = _HANDLERS) -> None:
    package = root / "app"
    package.mkdir(parents=True, exist_ok=True)
    (package / "__init__.py").write_text("", encoding="utf-8")
    (package / "handlers.py").write_text(textwrap.dedent(handlers_source), encoding="utf-8")


def test_main_writes_module_and_check_passes_afterwards(tmp_path: Path) -> None:
    source_root = tmp_path / "src"
    output_dir = tmp_path / "generated"
    _write_sources(source_root)

    assert main([str(source_root), "--output-dir", str(output_dir)]) == 0

    generated = (output_dir / "handler_registrations.py").read_text(encoding="utf-8")
    assert "app.handlers.EchoHandler," in generated
    assert main([str(source_root), "--output-dir", str(output_dir), "--check"]) == 0


def test_check_fails_when_generated_module_is_stale(
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    source_root = tmp_path / "src"
    output_dir = tmp_path / "generated"
    _write_sources(source_root)
    output_dir.mkdir()
    (output_dir / "handler_registrations.py").write_text("# stale\n", encoding="utf-8")

    assert main([str(source_root), "--output-dir", str(output_dir), "--check"]) == 1
    assert "is out of sync" in capsys.readouterr().err
    assert (output_dir / "handler_registrations.py").read_text(encoding="utf-8") == "# stale\n"


def test_main_prints_diagnostics_to_stderr(
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    source_root = tmp_path / "src"
    output_dir = tmp_path / "generated"
    _write_sources(source_root, _DUPLICATE_HANDLERS)

    assert main([str(source_root), "--output-dir", str(output_dir)]) == 0

    err = capsys.readouterr().err
    assert "warning[duplicate-handler]" in err
    assert "Handler: 'app.handlers.SecondEcho'" in err


def test_main_removes_generated_module_when_no_handlers_remain(tmp_path: Path) -> None:
    source_root = tmp_path / "src"
    output_dir = tmp_path / "generated"
    _write_sources(source_root)
    assert main([str(source_root), "--output-dir", str(output_dir)]) == 0

    _write_sources(source_root, "class Plain(object):\n    pass\n")

    assert main([str(source_root), "--output-dir", str(output_dir)]) == 0
    assert not (output_dir / "handler_registrations.py").exists()


def test_main_reports_missing_source_root(
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    assert main([str(tmp_path / "missing")]) == 2
    assert "is not a directory" in capsys.readouterr().err
