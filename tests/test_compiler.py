#!/usr/bin/env python3
"""
Tests for compiling single gitignore lines
"""

import re
from unittest.mock import patch

import pytest

from ark.exceptions import IgnorePatternError
from ark.ignore import compile_pattern, translate_glob


@pytest.fixture
def anchor(tmp_path):
    return str(tmp_path)


@pytest.mark.parametrize("line", ["", "   ", "\n", "\r\n", "# comment", "   # indented comment"])
def test_blank_and_comment_lines_yield_nothing(anchor, line):
    assert compile_pattern(line, anchor) is None


def test_marker_only_lines_yield_nothing(anchor):
    assert compile_pattern("!", anchor) is None
    assert compile_pattern("/", anchor) is None


def test_plain_glob_matches_any_segment(anchor):
    p = compile_pattern("*.log", anchor)
    assert not p.negate
    assert not p.anchored
    assert p.matches("debug.log")
    assert p.matches("src/debug.log")
    assert p.matches("logs.log/inner.txt")
    assert not p.matches("debug.logx")
    assert not p.matches("debug.log.txt")


def test_star_does_not_cross_slash(anchor):
    p = compile_pattern("src/*.go", anchor)
    assert p.matches("src/main.go")
    assert not p.matches("src/pkg/main.go")


def test_question_mark_matches_one_character(anchor):
    p = compile_pattern("?.txt", anchor)
    assert p.matches("a.txt")
    assert not p.matches("ab.txt")
    assert not p.matches(".txt")


def test_trailing_slash_covers_directory_and_contents(anchor):
    p = compile_pattern("build/", anchor)
    assert p.matches("build")
    assert p.matches("build/x.o")
    assert p.matches("sub/build/x.o")
    assert not p.matches("build.go")
    assert not p.matches("builder/x.o")


def test_leading_slash_anchors_to_directory(anchor):
    p = compile_pattern("/build/", anchor)
    assert p.anchored
    assert p.matches("build/x.o")
    assert not p.matches("sub/build/x.o")


def test_double_star_between_slashes(anchor):
    p = compile_pattern("a/**/b/*.txt", anchor)
    for path in ("a/b/file.txt", "a/x/b/file.txt", "a/x/y/b/file.txt"):
        assert p.matches(path), path
    assert not p.matches("a/b/c/file.txt")


def test_leading_and_trailing_double_star(anchor):
    leading = compile_pattern("**/generated/*", anchor)
    assert leading.matches("generated/code.go")
    assert leading.matches("src/generated/code.go")

    trailing = compile_pattern("temp/**", anchor)
    assert trailing.matches("temp/cache/file.txt")
    assert not trailing.matches("temporary/file.txt")


def test_negation(anchor):
    p = compile_pattern("!keep.log", anchor)
    assert p.negate
    assert p.matches("keep.log")


def test_negated_anchored_rule(anchor):
    p = compile_pattern("!/dist", anchor)
    assert p.negate
    assert p.anchored
    assert p.matches("dist")
    assert not p.matches("web/dist")


def test_escaped_hash_and_bang_are_literal(anchor):
    hash_rule = compile_pattern("\\#file", anchor)
    assert hash_rule is not None
    assert not hash_rule.negate
    assert hash_rule.matches("#file")

    bang_rule = compile_pattern("\\!special.txt", anchor)
    assert not bang_rule.negate
    assert bang_rule.matches("!special.txt")


def test_spaces(anchor):
    p = compile_pattern("dir with space/", anchor)
    assert p.matches("dir with space/file.txt")

    escaped = compile_pattern("foo\\ ", anchor)
    assert escaped.matches("foo ")
    assert not escaped.matches("foo")


def test_escaped_backslash(anchor):
    p = compile_pattern("a\\\\b", anchor)
    assert p.matches("a\\b")


def test_escaped_backslash_before_trailing_space(anchor):
    p = compile_pattern("foo\\\\ ", anchor)
    assert p.raw == "foo\\\\"
    assert p.matches("foo\\")
    assert not p.matches("foo\\ ")

    odd = compile_pattern("foo\\\\\\ ", anchor)
    assert odd.matches("foo\\ ")


def test_surrounding_whitespace_and_crlf_trimmed(anchor):
    p = compile_pattern("  *.tmp  \r\n", anchor)
    assert p.raw == "*.tmp"
    assert p.matches("x.tmp")


def test_anchor_dir_is_cleaned(tmp_path):
    messy = str(tmp_path / "sub" / ".." / "other") + "/"
    p = compile_pattern("*.o", messy)
    assert p.anchor_dir == str(tmp_path / "other")


def test_diagnostics(anchor):
    p = compile_pattern("*.log", anchor, line_no=7, source="/repo/.gitignore")
    assert p.line_no == 7
    assert p.describe() == "/repo/.gitignore:7:*.log"


def test_translate_glob():
    assert translate_glob("*.py") == "[^/]*\\.py"
    assert translate_glob("a/**/b") == "a(?:/[^/]*)*/b"
    assert translate_glob("**/x") == "(?:.*/)?x"
    assert translate_glob("x/**") == "x(?:/.*)?"


def test_compilation_is_pure(anchor):
    lines = ["*.log", "!keep.log", "/build/", "docs/**/*.md", "a?c"]
    first = [compile_pattern(line, anchor) for line in lines]
    second = [compile_pattern(line, anchor) for line in lines]
    assert first == second
    assert [p.matcher.pattern for p in first] == [p.matcher.pattern for p in second]


def test_compile_failure_reports_line(anchor):
    with patch("ark.ignore.compiler.re") as mock_re:
        mock_re.escape = re.escape
        mock_re.error = re.error
        mock_re.compile.side_effect = re.error("unbalanced parenthesis")

        with pytest.raises(IgnorePatternError) as exc_info:
            compile_pattern("bad[", anchor, line_no=3, source=".gitignore")

    err = exc_info.value
    assert err.line_no == 3
    assert err.raw == "bad["
    assert err.source == ".gitignore"
    assert ".gitignore:3" in str(err)
