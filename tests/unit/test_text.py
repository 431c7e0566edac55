"""Unit tests for the shared text and URL helpers."""

from __future__ import annotations

import pytest

from content_extraction.core.text import (
    EXCERPT_MAX_CHARS,
    collapse_whitespace,
    count_words,
    detect_media_type,
    extract_domain,
    format_reading_time,
    make_excerpt,
    strip_html,
    truncate,
)


class TestReadingTime:
    @pytest.mark.parametrize(
        ("words", "expected"),
        [(0, "1 min"), (1, "1 min"), (200, "1 min"), (201, "2 min"), (1000, "5 min")],
    )
    def test_format_reading_time(self, words: int, expected: str) -> None:
        assert format_reading_time(words) == expected

    def test_count_words_splits_on_any_whitespace(self) -> None:
        assert count_words("one  two\nthree\tfour ") == 4
        assert count_words("   ") == 0


class TestTruncate:
    def test_short_text_unchanged(self) -> None:
        assert truncate("hello world", 50) == "hello world"

    def test_breaks_on_word_boundary(self) -> None:
        assert truncate("alpha beta gamma", 12) == "alpha beta"

    def test_single_long_word_is_hard_cut(self) -> None:
        assert truncate("a" * 20, 5) == "aaaaa"


class TestMakeExcerpt:
    def test_prefers_description(self) -> None:
        assert make_excerpt("  A   description ", "body text") == "A description"

    def test_falls_back_to_text(self) -> None:
        assert make_excerpt(None, "body text") == "body text"

    def test_long_text_gets_ellipsis_within_limit(self) -> None:
        excerpt = make_excerpt("", "word " * 200)

        assert excerpt.endswith("...")
        assert len(excerpt) <= EXCERPT_MAX_CHARS


class TestWhitespaceAndHtml:
    def test_collapse_whitespace(self) -> None:
        assert collapse_whitespace(" a \n\n b\t c ") == "a b c"

    def test_strip_html(self) -> None:
        assert strip_html("<p>Hello <b>there</b></p>") == "Hello there"


class TestExtractDomain:
    def test_lowercases_host(self) -> None:
        assert extract_domain("https://News.Example.COM/path?q=1") == "news.example.com"

    def test_no_host(self) -> None:
        assert extract_domain("not a url") == "unknown"


class TestDetectMediaType:
    @pytest.mark.parametrize(
        ("url", "expected"),
        [
            ("https://www.youtube.com/watch?v=abc", "video"),
            ("https://youtu.be/abc", "video"),
            ("https://example.com/clip.MP4", "video"),
            ("https://open.spotify.com/episode/1", "audio"),
            ("https://example.com/show.mp3", "audio"),
            ("https://example.com/photo.png", "image"),
            ("https://example.com/article", "text"),
        ],
    )
    def test_classification(self, url: str, expected: str) -> None:
        assert detect_media_type(url) == expected
