"""Recorded tool output used by the parser and discovery tests."""

from pathlib import Path

FIXTURES_DIR = Path(__file__).parent


def read_fixture(name: str) -> str:
    return (FIXTURES_DIR / name).read_text(encoding="utf-8")
