# conftest.py - shared fixtures for the patchforge suite
import pytest


def _unit(search: str, replace: str, start_line=None, end_line=None) -> str:
    header = ["<<<<<<< SEARCH"]
    if start_line is not None:
        header.append(f":start_line:{start_line}")
    if end_line is not None:
        header.append(f":end_line:{end_line}")
    header.append("-------")
    return "\n".join(header + [search, "=======", replace, ">>>>>>> REPLACE"])


@pytest.fixture
def make_patch():
    """
    Build patch text from (search, replace) pairs or (search, replace, start_line) triples.
    """

    def _make(*units) -> str:
        return "\n".join(_unit(*u) for u in units) + "\n"

    return _make


@pytest.fixture
def numbered_lines():
    """Distinct filler lines 'line 1' .. 'line N', as a list."""

    def _make(n: int):
        return [f"line {i}: value = {i * 7}" for i in range(1, n + 1)]

    return _make
