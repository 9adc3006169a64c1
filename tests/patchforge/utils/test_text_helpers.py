import pytest

from patchforge.utils.text import (
    convert_eol,
    detect_eol,
    line_of_offset,
    line_span,
    line_start_offsets,
    normalize_lines,
    normalize_quotes,
    strip_line_numbers,
)


def test_detect_and_convert_eol():
    assert detect_eol("a\r\nb") == "\r\n"
    assert detect_eol("a\rb") == "\r"
    assert detect_eol("a\nb") == "\n"
    assert detect_eol("") == "\n"
    assert convert_eol("a\nb\r\nc\rd", "\r\n") == "a\r\nb\r\nc\r\nd"
    assert convert_eol("a\r\nb", "\n") == "a\nb"


def test_line_start_offsets():
    assert line_start_offsets("") == [0]
    assert line_start_offsets("abc") == [0]
    assert line_start_offsets("a\nb\n") == [0, 2]
    assert line_start_offsets("a\r\nbb\r\nc") == [0, 3, 7]
    assert line_start_offsets("a\n\n") == [0, 2]


def test_line_of_offset():
    starts = line_start_offsets("a\nbb\nc\n")
    assert line_of_offset(starts, 0) == 1
    assert line_of_offset(starts, 2) == 2
    assert line_of_offset(starts, 4) == 2
    assert line_of_offset(starts, 5) == 3


@pytest.mark.parametrize(
    "content, first, last, expected",
    [
        ("a\nb\nc\n", 2, 2, "b"),
        ("a\nb\nc\n", 1, 2, "a\nb"),
        ("a\nb\nc", 3, 3, "c"),
        ("a\r\nb\r\n", 1, 1, "a"),
    ],
)
def test_line_span_excludes_final_terminator(content, first, last, expected):
    starts = line_start_offsets(content)
    s, e = line_span(content, starts, first, last)
    assert content[s:e] == expected


def test_normalize_quotes_and_lines():
    assert normalize_quotes("“hi” ‘there’") == "\"hi\" 'there'"
    assert normalize_lines(["    if x:  ", "\tpass", "", "    done"]) == "if x:\npass\n\ndone"
    assert normalize_lines(["  a", "    b"]) == "a\n  b"


def test_strip_line_numbers_only_when_every_line_is_numbered():
    text, stripped = strip_line_numbers("10 | def f():\n11 |     return 1")
    assert stripped
    assert text == "def f():\n    return 1"

    text, stripped = strip_line_numbers("  7|x\n\n  8|y")
    assert stripped and text == "x\n\ny"

    original = "10 | def f():\n    return 1"
    assert strip_line_numbers(original) == (original, False)
    assert strip_line_numbers("") == ("", False)
