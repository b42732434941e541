"""Unit tests for pagedigest.patterns."""

from __future__ import annotations

from pagedigest.patterns import (
    compile_domain_pattern,
    compiled_selectors,
    glob_to_regex,
    list_matches_host,
    pattern_matches_host,
)

# ---------------------------------------------------------------------------
# Bare hostnames
# ---------------------------------------------------------------------------


class TestHostnamePatterns:
    def test_exact_host(self) -> None:
        assert pattern_matches_host("example.com", "example.com")

    def test_subdomain(self) -> None:
        assert pattern_matches_host("example.com", "news.example.com")

    def test_suffix_without_dot_does_not_match(self) -> None:
        assert not pattern_matches_host("example.com", "badexample.com")

    def test_dot_is_literal(self) -> None:
        assert not pattern_matches_host("example.com", "exampleXcom")

    def test_case_insensitive(self) -> None:
        assert pattern_matches_host("Example.COM", "www.example.com")

    def test_surrounding_whitespace_ignored(self) -> None:
        assert pattern_matches_host("  example.com  ", "example.com")


# ---------------------------------------------------------------------------
# Globs
# ---------------------------------------------------------------------------


class TestGlobPatterns:
    def test_star_prefix_matches_subdomain(self) -> None:
        assert pattern_matches_host("*.example.com", "www.example.com")

    def test_star_prefix_needs_a_label(self) -> None:
        assert not pattern_matches_host("*.example.com", "example.com")

    def test_leading_dot_normalized_to_star(self) -> None:
        assert pattern_matches_host(".example.com", "a.example.com")

    def test_question_mark_matches_one_char(self) -> None:
        assert pattern_matches_host("ex?mple.com", "exemple.com")
        assert not pattern_matches_host("ex?mple.com", "exaample.com")

    def test_glob_is_anchored(self) -> None:
        assert not pattern_matches_host("news.*", "fakenews.example.com")

    def test_glob_to_regex_escapes_metacharacters(self) -> None:
        regex = glob_to_regex("a+b.com")
        assert regex.match("a+b.com")
        assert not regex.match("aab.com")


# ---------------------------------------------------------------------------
# Regex literals
# ---------------------------------------------------------------------------


class TestRegexPatterns:
    def test_regex_literal(self) -> None:
        assert pattern_matches_host(r"/^news\./", "news.example.com")
        assert not pattern_matches_host(r"/^news\./", "www.news.example.com")

    def test_regex_is_unanchored_search(self) -> None:
        assert pattern_matches_host("/wiki/", "en.wikipedia.org")

    def test_invalid_regex_compiles_to_none(self) -> None:
        assert compile_domain_pattern("/([/") is None

    def test_invalid_regex_never_matches(self) -> None:
        assert not pattern_matches_host("/([/", "example.com")

    def test_single_slash_is_an_empty_regex(self) -> None:
        assert compile_domain_pattern("/") is not None
        assert pattern_matches_host("/", "example.com")
        assert pattern_matches_host("/", "news.example.org")
        assert list_matches_host(["/"], "anything.test")


# ---------------------------------------------------------------------------
# Lists and helpers
# ---------------------------------------------------------------------------


class TestPatternLists:
    def test_empty_pattern_is_none(self) -> None:
        assert compile_domain_pattern("   ") is None

    def test_empty_list_matches_nothing(self) -> None:
        assert not list_matches_host([], "example.com")

    def test_invalid_entry_is_skipped(self) -> None:
        assert list_matches_host(["/([/", "", "example.com"], "www.example.com")

    def test_no_entry_matches(self) -> None:
        assert not list_matches_host(["other.org", "*.test"], "example.com")

    def test_compiled_selectors_skips_empty(self) -> None:
        assert compiled_selectors(["article", "", "main"]) == "article,main"


class TestDocumentedExamples:
    def test_exact(self) -> None:
        regex = compile_domain_pattern("example.com")
        assert regex.search("example.com")
        assert regex.search("www.example.com")
        assert not regex.search("notexample.com")

    def test_glob(self) -> None:
        assert pattern_matches_host("*.google.com", "mail.google.com")
        assert not pattern_matches_host("*.google.com", "google.com")

    def test_invalid_regex(self) -> None:
        assert compile_domain_pattern("/[invalid/") is None
