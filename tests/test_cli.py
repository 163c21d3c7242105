"""End-to-end tests for main() and the output sinks."""

from __future__ import annotations

from pathlib import Path
from typing import List

import pyperclip
import pytest

import llm_cocop
from llm_cocop import ConfigBuilder, OutputMode, main
from tests._helpers import write


@pytest.fixture
def clipboard(monkeypatch) -> List[str]:
    copied: List[str] = []
    monkeypatch.setattr(llm_cocop.pyperclip, "copy", copied.append)
    return copied


def _python_project(root: Path) -> Path:
    write(root / "pyproject.toml", '[project]\nname = "demo"\nversion = "0.1"\n')
    write(root / "demo" / "__init__.py", "VALUE = 1\n")
    write(root / "demo" / "__pycache__" / "junk.txt", "cached\n")
    return root


def test_main_copies_document_to_clipboard(tmp_path: Path, clipboard, capsys) -> None:
    project = _python_project(tmp_path / "demo-project")

    assert main([str(project)]) == 0

    assert len(clipboard) == 1
    document = clipboard[0]
    assert document.startswith("<project>\n<python_info>\nProject Type: Python (PEP 621)\n")
    assert '<file path="demo/__init__.py">\nVALUE = 1\n\n</file>' in document
    assert "junk.txt" not in document

    out = capsys.readouterr().out
    assert "Processing paths..." in out
    assert "Files processed: 2" in out
    assert f"Total size: {len(document)} characters" in out
    assert "Project type: Python" in out


def test_main_clipboard_failure_exits_non_zero(tmp_path: Path, monkeypatch, capsys) -> None:
    def broken(_: str) -> None:
        raise pyperclip.PyperclipException("no clipboard mechanism")

    monkeypatch.setattr(llm_cocop.pyperclip, "copy", broken)
    write(tmp_path / "a.txt", "a\n")

    assert main([str(tmp_path)]) == 1
    assert "no clipboard mechanism" in capsys.readouterr().err


def test_main_stdout_sink_keeps_notices_on_stderr(tmp_path: Path, clipboard, capsys, contained_walk) -> None:
    project = tmp_path / "plain"
    write(project / "notes.txt", "hello\n")

    assert main([str(project), "--stdout"]) == 0

    captured = capsys.readouterr()
    assert captured.out.startswith("<project>\n")
    assert "Project type could not be determined." in captured.out
    assert "Processing paths..." in captured.err
    assert "Project type: Unknown" in captured.err
    assert clipboard == []


def test_main_without_manifest_reports_unknown(tmp_path: Path, clipboard, capsys, contained_walk) -> None:
    write(tmp_path / "plain" / "notes.txt", "hello\n")

    assert main([str(tmp_path / "plain")]) == 0

    document = clipboard[0]
    assert document.startswith("<project>\n<project_info>\nProject type could not be determined.\n</project_info>\n")
    assert '<file path="notes.txt">\nhello\n\n</file>' in document
    assert "Project type: Unknown" in capsys.readouterr().out


def test_main_writes_output_file(tmp_path: Path, clipboard) -> None:
    write(tmp_path / "src" / "lib.rs", "pub fn x() {}\n")
    write(tmp_path / "Cargo.toml", '[package]\nname = "foo"\nversion = "1.0"\n\n[dependencies]\nbar = "2.0"\n')
    out_file = tmp_path / "out" / "context.txt"

    assert main([str(tmp_path / "src"), "-o", str(out_file)]) == 0

    document = out_file.read_text(encoding="utf-8")
    assert "<cargo_info>\nProject Name: foo\nVersion: 1.0\n" in document
    assert '- bar = "2.0"' in document
    assert '<file path="lib.rs">' in document
    assert clipboard == []


def test_main_with_no_files_still_succeeds(tmp_path: Path, clipboard, contained_walk) -> None:
    empty = tmp_path / "empty"
    empty.mkdir()

    assert main([str(empty)]) == 0
    assert "<file_structure>\n</file_structure>" in clipboard[0]


def test_main_explicit_manifest_flags(tmp_path: Path, clipboard) -> None:
    write(tmp_path / "code" / "main.py", "print(1)\n")
    requirements = write(tmp_path / "meta" / "requirements.txt", "click\n")

    assert main([str(tmp_path / "code"), "--pyproject", str(requirements)]) == 0
    assert "<python_info>\nProject Type: Python (requirements.txt)\n" in clipboard[0]


def test_config_from_args(tmp_path: Path) -> None:
    args = llm_cocop.create_parser().parse_args([
        str(tmp_path), "--stdout", "--max-size", "2M",
        "--exclude-dir", "fixtures", "--exclude-extension", "CSV",
        "--cargo-toml", "Cargo.toml",
    ])

    config = ConfigBuilder.from_args(args)

    assert config.paths == (tmp_path,)
    assert config.output_mode == OutputMode.STDOUT
    assert config.max_size_bytes == 2 * 1024 * 1024
    assert "fixtures" in config.excluded_dirs and ".git" in config.excluded_dirs
    assert ".csv" in config.excluded_extensions
    assert config.cargo_toml == Path("Cargo.toml")
    assert config.pyproject is None
    assert config.use_gitignore


@pytest.mark.parametrize(
    "size, expected",
    [("100k", 100 * 1024), ("1g", 1024 ** 3), ("512", 512), ("0", None), ("lots", 100 * 1024)],
)
def test_parse_size(size: str, expected) -> None:
    assert ConfigBuilder._parse_size(size) == expected


def test_output_and_stdout_are_exclusive(tmp_path: Path) -> None:
    with pytest.raises(SystemExit):
        llm_cocop.create_parser().parse_args([str(tmp_path), "--stdout", "-o", "x.txt"])
