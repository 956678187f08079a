from todo_tracker.matcher import LineMatch, match_line
from todo_tracker.scan_types import TagMatcher


def test_match_line_reports_tag_index_and_length():
    tags = [TagMatcher(name="TODO", match=("TODO:",))]

    result = match_line("    # TODO: clean up", tags)

    assert result == LineMatch(tag="TODO", match_index=6, match_length=5)


def test_match_line_returns_none_without_match():
    tags = [TagMatcher(name="TODO", match=("TODO:",))]

    assert match_line("plain code", tags) is None


def test_match_line_prefers_first_configured_tag():
    tags = [
        TagMatcher(name="FIXME", match=("FIXME",)),
        TagMatcher(name="TODO", match=("TODO",)),
    ]

    # TODO appears earlier in the line, but FIXME is listed first.
    result = match_line("TODO and FIXME on one line", tags)

    assert result is not None
    assert result.tag == "FIXME"
    assert result.match_index == 9


def test_match_line_prefers_first_listed_literal():
    tags = [TagMatcher(name="TODO", match=("@todo", "TODO"))]

    result = match_line("TODO first, then @todo", tags)

    assert result is not None
    assert result.match_index == 17
    assert result.match_length == 5


def test_match_line_skips_empty_literals():
    tags = [TagMatcher(name="TODO", match=("", "TODO:"))]

    assert match_line("nothing here", tags) is None
    result = match_line("x TODO: y", tags)
    assert result is not None
    assert result.match_index == 2


def test_match_line_with_no_tags_never_matches():
    assert match_line("TODO: anything", []) is None
