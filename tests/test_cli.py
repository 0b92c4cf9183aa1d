import logging
from datetime import date
from pathlib import Path

import pytest
from click.testing import CliRunner

from inkwell import __version__
from inkwell.cli import cli
from inkwell.content import DocumentLoader


@pytest.fixture(autouse=True)
def restore_inkwell_logger():
    logger = logging.getLogger("inkwell")
    saved = (logger.handlers[:], logger.level, logger.propagate)
    yield
    logger.handlers, logger.level, logger.propagate = saved[0], saved[1], saved[2]


def write_doc(content: Path, name: str, header: str) -> None:
    content.mkdir(parents=True, exist_ok=True)
    (content / name).write_text(f"+++\n{header}\n+++\nBody.\n", encoding="utf-8")


@pytest.fixture
def project(tmp_path, monkeypatch):
    content = tmp_path / "content"
    write_doc(content, "a.md", 'title = "Asyncio"\ndate = 2024-10-01\ntags = ["python"]')
    write_doc(content, "b.md", 'title = "Metaclasses"\ndate = 2024-11-20')
    monkeypatch.chdir(tmp_path)
    return tmp_path


def test_build_command(project):
    result = CliRunner().invoke(cli, ["build"], catch_exceptions=False)
    assert result.exit_code == 0, result.output
    assert "Built 2 documents" in result.output
    assert (project / "output" / "posts" / "a" / "index.html").exists()


def test_build_lenient_reports_skipped(project):
    write_doc(project / "content", "bad.md", 'title = "Undated"')
    result = CliRunner().invoke(cli, ["-q", "build"], catch_exceptions=False)
    assert result.exit_code == 2
    assert "Built 2 documents" in result.output
    assert (project / "output" / "posts" / "a" / "index.html").exists()
    assert not (project / "output" / "posts" / "bad").exists()
    assert "Skipped 1 document(s)" in result.output
    assert "bad.md" in result.output
    assert "missing required field 'date'" in result.output


def test_build_strict_fails(project):
    write_doc(project / "content", "bad.md", 'title = "Undated"')
    result = CliRunner().invoke(cli, ["-q", "build", "--strict"], catch_exceptions=False)
    assert result.exit_code == 1
    assert "Build failed" in result.output
    assert "content/bad.md" in result.output
    assert not (project / "output").exists()


def test_build_require_documents(tmp_path, monkeypatch):
    (tmp_path / "content").mkdir()
    monkeypatch.chdir(tmp_path)
    result = CliRunner().invoke(cli, ["-q", "build", "--require-documents"], catch_exceptions=False)
    assert result.exit_code == 1
    assert "No documents found" in result.output


def test_build_output_option(project):
    result = CliRunner().invoke(cli, ["build", "--output", "public"], catch_exceptions=False)
    assert result.exit_code == 0
    assert (project / "public" / "index.html").exists()


def test_check_command(project):
    runner = CliRunner()
    result = runner.invoke(cli, ["check"], catch_exceptions=False)
    assert result.exit_code == 0
    assert "2 documents, 1 tags, 0 problem(s)" in result.output

    write_doc(project / "content", "bad.md", 'title = "Undated"')
    result = runner.invoke(cli, ["-q", "check"], catch_exceptions=False)
    assert result.exit_code == 1
    assert "1 problem(s)" in result.output
    assert not (project / "output").exists()


def test_new_command(project):
    runner = CliRunner()
    result = runner.invoke(
        cli,
        ["new", "Type Hints in Practice", "--tags", "python, typing", "--date", "2024-12-01"],
        catch_exceptions=False,
    )
    assert result.exit_code == 0, result.output
    path = project / "content" / "2024-12-01-type-hints-in-practice.md"
    assert path.exists()

    doc = DocumentLoader().load(path)
    assert doc.identifier == "type-hints-in-practice"
    assert doc.title == "Type Hints in Practice"
    assert doc.date == date(2024, 12, 1)
    assert doc.tags == frozenset({"python", "typing"})
    assert doc.body == "\n"

    again = runner.invoke(cli, ["new", "Type Hints in Practice", "--date", "2024-12-02"])
    assert again.exit_code != 0
    assert "already exists" in again.output


def test_new_command_draft_and_quotes(project):
    result = CliRunner().invoke(cli, ["new", 'The "self" argument', "--draft"], catch_exceptions=False)
    assert result.exit_code == 0
    path = project / "content" / f"{date.today().isoformat()}-the-self-argument.md"
    doc = DocumentLoader().load(path)
    assert doc.title == 'The "self" argument'
    assert doc.draft is True
    assert doc.tags == frozenset()


def test_version_option():
    result = CliRunner().invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_module_main_entrypoint():
    from inkwell.__main__ import main

    assert callable(main)


def test_main_invokes_cli(monkeypatch):
    import inkwell.cli as cli_mod

    called = {}
    monkeypatch.setattr(cli_mod, "cli", lambda: called.setdefault("ran", True))
    cli_mod.main()
    assert called["ran"]
