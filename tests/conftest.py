"""
Shared pytest configuration for the sync engine test suite.

This file centralizes reusable testing utilities so that:
    • tests build vaults on disk the same way
    • the three-note reference vault is defined once
    • store doubles behave predictably across unit, e2e and CLI tests
"""

from pathlib import Path
from typing import Callable, Dict

import pytest
from typer.testing import CliRunner

from tests.fixtures.fake_store import FakeStore

# ============================================================================
# FIXTURE DIRECTORY
# ============================================================================
FIXTURES_DIR = Path(__file__).parent / "fixtures"

# ---------------------------------------------------------------------------
# Reference vault: 2024-01-01 (tags a, b), 2024-01-02 (scalar tag a),
# 2024-01-03 (no tags key).
# ---------------------------------------------------------------------------
REFERENCE_NOTES: Dict[str, str] = {
    "2024-01-01.md": "---\ntags: [a, b]\n---\nNew year.\n",
    "2024-01-02.md": "---\ntags: a\n---\nSecond day.\n",
    "2024-01-03.md": "---\nmood: fine\n---\nNothing tagged today.\n",
}


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provides a fresh Typer CliRunner instance for CLI tests."""
    return CliRunner()


@pytest.fixture
def load_text_fixture() -> Callable[[str], str]:
    """Load a raw text fixture from tests/fixtures/notes/."""

    def _loader(name: str) -> str:
        return (FIXTURES_DIR / "notes" / name).read_text(encoding="utf-8")

    return _loader


@pytest.fixture
def vault(tmp_path: Path) -> Path:
    """An empty vault with a `Daily` notes directory."""
    notes = tmp_path / "vault" / "Daily"
    notes.mkdir(parents=True)
    return tmp_path / "vault"


@pytest.fixture
def write_note(vault: Path) -> Callable[[str, str], Path]:
    """Write a note (relative to the notes directory) and return its path."""

    def _write(name: str, text: str) -> Path:
        path = vault / "Daily" / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def reference_vault(vault: Path, write_note: Callable[[str, str], Path]) -> Path:
    for name, text in REFERENCE_NOTES.items():
        write_note(name, text)
    return vault


@pytest.fixture
def reference_sources():
    """The reference notes as an in-memory lister."""

    def _lister(on_error=None):
        return list(REFERENCE_NOTES.items())

    return _lister


@pytest.fixture
def fake_store() -> FakeStore:
    return FakeStore()
