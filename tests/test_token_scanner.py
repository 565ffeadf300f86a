"""Tests for the string- and nesting-aware scanner."""

from analyzers.token_scanner import (
    blank_comments,
    extract_call_arguments,
    extract_first_argument,
    find_matching_close,
    split_top_level,
)


class TestFindMatchingClose:
    """Test find_matching_close."""

    def test_skips_nested_and_strings(self):
        text = "call(a, (b), ')') + 1"
        assert find_matching_close(text, 4) == text.rindex(")")

    def test_unbalanced(self):
        assert find_matching_close("call(a, (b)", 4) == -1

    def test_not_a_bracket(self):
        assert find_matching_close("abc", 0) == -1


class TestExtractFirstArgument:
    """Test extract_first_argument."""

    def test_simple_argument(self):
        text = "app.get('/a', handler)"
        arg = extract_first_argument(text, text.index("(") + 1)
        assert arg.expression == "'/a'"
        assert arg.terminator == ","
        assert text[arg.end_index] == ","

    def test_array_argument(self):
        arg = extract_first_argument("(['/a', '/b'], h)", 1)
        assert arg.expression == "['/a', '/b']"

    def test_comma_inside_string(self):
        arg = extract_first_argument("('/a,b', h)", 1)
        assert arg.expression == "'/a,b'"

    def test_escaped_quote(self):
        arg = extract_first_argument("('it\\'s', h)", 1)
        assert arg.expression == "'it\\'s'"

    def test_call_argument(self):
        arg = extract_first_argument("(path.join(A, 'b'), h)", 1)
        assert arg.expression == "path.join(A, 'b')"

    def test_closing_paren_terminates(self):
        arg = extract_first_argument("('/only')", 1)
        assert arg.expression == "'/only'"
        assert arg.terminator == ")"

    def test_empty_call(self):
        arg = extract_first_argument("()", 1)
        assert arg.expression == ""

    def test_truncated_text(self):
        arg = extract_first_argument("('/a'", 1)
        assert arg.expression == "'/a'"
        assert arg.terminator == ""

    def test_nothing_left(self):
        assert extract_first_argument("(   ", 1) is None


class TestExtractCallArguments:
    """Test extract_call_arguments."""

    def test_all_arguments(self):
        text = "use('/v1', auth(), api)"
        assert extract_call_arguments(text, 3) == ["'/v1'", "auth()", "api"]

    def test_no_arguments(self):
        assert extract_call_arguments("use()", 3) == []

    def test_unbalanced(self):
        assert extract_call_arguments("use('/v1', api", 3) is None


class TestSplitTopLevel:
    """Test split_top_level."""

    def test_respects_nesting(self):
        assert split_top_level("a || (b || c)", ("||",)) == ["a", "(b || c)"]

    def test_respects_strings(self):
        assert split_top_level("'a+b' + c", ("+",)) == ["'a+b'", "c"]

    def test_multiple_separators(self):
        assert split_top_level("a ?? b || c", ("||", "??")) == ["a", "b", "c"]

    def test_keeps_empty_parts(self):
        assert split_top_level("'a' +", ("+",)) == ["'a'", ""]


class TestBlankComments:
    """Test blank_comments."""

    def test_line_comment(self):
        text = "a // app.get('/x')\nb"
        blanked = blank_comments(text)
        assert len(blanked) == len(text)
        assert "app.get" not in blanked
        assert blanked.split("\n")[1] == "b"

    def test_block_comment_keeps_lines(self):
        text = "/* router.get('/x')\n more */z"
        blanked = blank_comments(text)
        assert blanked.count("\n") == 1
        assert blanked.endswith("z")
        assert "router" not in blanked

    def test_comment_markers_in_strings(self):
        text = "app.get('//not-a-comment', h) // real"
        blanked = blank_comments(text)
        assert "'//not-a-comment'" in blanked
        assert "real" not in blanked

    def test_url_in_template(self):
        text = "const u = `http://x/${a}`; // c"
        blanked = blank_comments(text)
        assert "`http://x/${a}`" in blanked

    def test_regex_literal_is_not_a_comment(self):
        text = "const re = /^\\/\\//; router.get('/kept', h); // gone"
        blanked = blank_comments(text)
        assert "router.get('/kept', h);" in blanked
        assert "/^\\/\\//" in blanked
        assert "gone" not in blanked

    def test_regex_with_slash_in_class(self):
        text = "app.get(/[/]api/, h); // c"
        blanked = blank_comments(text)
        assert "app.get(/[/]api/, h);" in blanked
        assert blanked.rstrip().endswith(";")

    def test_division_is_not_a_regex(self):
        text = "x = a / b; // note /x/"
        blanked = blank_comments(text)
        assert blanked.rstrip() == "x = a / b;"
