import textwrap
import time

import pytest

from patchforge.config import MatchConfig
from patchforge.errors import MalformedBlockError
from patchforge.match.locate import MatchStrategy, _dedupe, _middle_out, locate
from patchforge.models import LineRange, MatchCandidate, SearchReplaceBlock


FUNC = "function test() {\n    return true;\n}\n"


def _block(search, **kw):
    return SearchReplaceBlock(search=search, replace="", **kw)


def _with_targets(numbered_lines, n, at, text="target()"):
    lines = numbered_lines(n)
    for line in at:
        lines[line - 1] = text
    return "\n".join(lines) + "\n"


def test_exact_single_occurrence():
    result = locate(FUNC, _block("return true;"))
    assert result.strategy is MatchStrategy.EXACT
    (c,) = result.candidates
    assert (c.start_line, c.end_line, c.score) == (2, 2, 1.0)
    assert FUNC[c.start:c.end] == "return true;"


def test_exact_multiline_span_lines():
    result = locate(FUNC, _block("    return true;\n}"))
    (c,) = result.candidates
    assert (c.start_line, c.end_line) == (2, 3)


def test_every_exact_occurrence_is_a_candidate():
    content = "a {\n}\nb {\n}\nc {\n}\n"
    result = locate(content, _block("}"))
    assert [c.start_line for c in result.candidates] == [2, 4, 6]
    assert all(c.score == 1.0 for c in result.candidates)


def test_scope_is_a_hard_filter():
    content = "\n".join(["a", "x = 1", "b", "c", "x = 1", "d", "e", "f"]) + "\n"
    result = locate(content, _block("x = 1"), scope=LineRange(3, 6))
    assert result.scoped
    assert [c.start_line for c in result.candidates] == [5]


def test_scope_past_end_of_file_has_a_note():
    result = locate(FUNC, _block("return"), scope=LineRange(50, 60))
    assert result.candidates == []
    assert "outside the file" in result.note


def test_hint_keeps_exact_hits_near_it(numbered_lines):
    content = _with_targets(numbered_lines, 200, at=(10, 150))
    result = locate(content, _block("target()", start_line_hint=148))
    assert [c.start_line for c in result.candidates] == [150]


def test_hint_far_from_all_hits_keeps_them_all_sorted_by_distance(numbered_lines):
    content = _with_targets(numbered_lines, 200, at=(10, 150))
    result = locate(content, _block("target()", start_line_hint=100))
    assert [c.start_line for c in result.candidates] == [150, 10]


def test_case_insensitive_pass():
    result = locate(FUNC, _block("RETURN TRUE;", ignore_case=True))
    assert result.strategy is MatchStrategy.CASE_INSENSITIVE
    (c,) = result.candidates
    assert c.score == 1.0
    assert FUNC[c.start:c.end] == "return true;"


def test_regex_pass_and_no_fuzzy_fallback():
    result = locate(FUNC, _block(r"return \w+;", use_regex=True))
    assert result.strategy is MatchStrategy.REGEX
    (c,) = result.candidates
    assert FUNC[c.start:c.end] == "return true;"

    missing = locate(FUNC, _block(r"retur \w+;", use_regex=True))
    assert missing.strategy is MatchStrategy.REGEX
    assert missing.candidates == []


def test_zero_width_regex_matches_are_ignored():
    result = locate("abc\n", _block(r"x*", use_regex=True))
    assert result.candidates == []


@pytest.mark.parametrize("pattern, fragment", [("(", "invalid regex"), ("(a+)+$", "backtracking-prone")])
def test_bad_regex_is_malformed(pattern, fragment):
    with pytest.raises(MalformedBlockError) as exc:
        locate(FUNC, _block(pattern, use_regex=True))
    assert fragment in str(exc.value)


def test_empty_search_and_none_content():
    with pytest.raises(MalformedBlockError, match="search text is empty"):
        locate(FUNC, _block(""))
    with pytest.raises(TypeError):
        locate(None, _block("x"))  # type: ignore[arg-type]


def test_fuzzy_tolerates_reindentation():
    content = textwrap.dedent("""\
        def compute(a, b):
            total = a + b
            return total


        def other():
            pass
        """)
    search = "def compute(a, b):\n  total = a + b\n  return total"
    result = locate(content, _block(search))
    assert result.strategy is MatchStrategy.FUZZY
    (c,) = result.candidates
    assert (c.start_line, c.end_line) == (1, 3)
    assert 0.8 <= c.score < 1.0
    # Whole lines, final line break excluded.
    assert content[c.start:c.end] == "def compute(a, b):\n    total = a + b\n    return total"


def test_fuzzy_folds_smart_quotes():
    content = 'x = 1\nprint("hello")\ny = 2\n'
    result = locate(content, _block("print(“hello”)"))
    (c,) = result.candidates
    assert c.start_line == 2
    assert c.score == pytest.approx(0.9999)


def test_fuzzy_prefers_the_hinted_neighbourhood(numbered_lines):
    lines = numbered_lines(300)
    lines[19] = "    result = compute_total(items)"
    lines[249] = "    result = compute_total(items)"
    content = "\n".join(lines) + "\n"
    result = locate(content, _block("result = compute_totals(items)", start_line_hint=245))
    assert result.strategy is MatchStrategy.FUZZY
    assert [c.start_line for c in result.candidates] == [250]


def test_sub_threshold_score_is_reported():
    result = locate("abcdefghij\n", _block("abcdefxxxx"))
    assert result.candidates == []
    assert result.best_score == pytest.approx(0.6)
    assert result.best_line == 1


def test_guard_abort_is_reported(numbered_lines):
    content = "\n".join(numbered_lines(100)) + "\n"
    result = locate(content, _block("nowhere to be found"), config=MatchConfig(max_windows=5))
    assert result.candidates == []
    assert result.aborted and "window cap" in result.aborted
    assert result.windows == 5


def test_no_match_in_large_file_finishes_quickly(numbered_lines):
    content = "\n".join(numbered_lines(2000)) + "\n"
    search = "\n".join(f"    unrelated_call_{i}(alpha, beta, gamma)" for i in range(10))
    t0 = time.monotonic()
    result = locate(content, _block(search))
    assert time.monotonic() - t0 < 10
    assert result.candidates == []


def test_no_match_in_large_xml_file_finishes_quickly():
    items = [f'  <item id="{i}"><name>Item {i}</name><price>{i % 97}.99</price></item>' for i in range(1500)]
    content = "<catalog>\n" + "\n".join(items) + "\n</catalog>\n"
    search = '<settings>\n  <timeout value="30"/>\n  <retries value="5"/>\n</settings>'
    t0 = time.monotonic()
    result = locate(content, _block(search))
    assert time.monotonic() - t0 < 10
    assert result.candidates == []


def test_middle_out_order():
    assert list(_middle_out(1, 5, 3)) == [3, 2, 4, 1, 5]
    assert list(_middle_out(1, 4, 1)) == [1, 2, 3, 4]
    assert list(_middle_out(3, 2, 3)) == []


def test_dedupe_drops_overlapping_ties_only():
    a = MatchCandidate(10, 12, 0.9, 0, 1)
    b = MatchCandidate(11, 13, 0.9, 2, 3)
    c = MatchCandidate(11, 13, 0.85, 2, 3)
    d = MatchCandidate(40, 42, 0.9, 5, 6)
    assert _dedupe([a, b, c, d]) == [a, c, d]
