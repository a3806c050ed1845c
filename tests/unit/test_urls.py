"""
Tests for Pinterest URL classification and normalization.
"""

from __future__ import annotations

import re

import pytest
from hypothesis import assume, given
from hypothesis import strategies as st

from pinreel.errors import ValidationError
from pinreel.urls import (
    VALID_DOMAINS,
    extract_pin_id,
    extract_video_extension,
    generate_download_filename,
    is_video_url,
    normalize_url,
    parse_url,
    validate_url,
)


class TestParseUrl:
    def test_numeric_pin(self):
        parsed = parse_url("https://www.pinterest.com/pin/123456789/")

        assert parsed.type == "pin"
        assert parsed.pin_id == "123456789"
        assert parsed.domain == "www.pinterest.com"
        assert parsed.normalized_url == "https://pinterest.com/pin/123456789"
        assert parsed.original_url == "https://www.pinterest.com/pin/123456789/"

    def test_slug_pin(self):
        parsed = parse_url("https://pinterest.com/pin/funny-cat-video/")

        assert parsed.type == "pin"
        assert parsed.pin_id == "funny-cat-video"

    def test_regional_domain_forced_to_https(self):
        parsed = parse_url("http://pinterest.co.uk/pin/987/")

        assert parsed.domain == "pinterest.co.uk"
        assert parsed.normalized_url == "https://pinterest.co.uk/pin/987"

    def test_short_link_code_is_pin_id(self):
        parsed = parse_url("https://pin.it/abc123")

        assert parsed.type == "pin"
        assert parsed.pin_id == "abc123"

    def test_board(self):
        parsed = parse_url("https://pinterest.com/someuser/recipes/")

        assert parsed.type == "board"
        assert parsed.username == "someuser"
        assert parsed.board_id == "recipes"
        assert parsed.pin_id is None

    def test_user(self):
        parsed = parse_url("https://pinterest.com/someuser")

        assert parsed.type == "user"
        assert parsed.username == "someuser"

    def test_surrounding_whitespace_is_trimmed(self):
        parsed = parse_url("  https://pinterest.com/pin/42  ")

        assert parsed.original_url == "https://pinterest.com/pin/42"
        assert parsed.pin_id == "42"

    def test_query_and_fragment_are_kept(self):
        parsed = parse_url("https://www.pinterest.com/pin/42/?utm_source=x#top")

        assert parsed.normalized_url == "https://pinterest.com/pin/42?utm_source=x#top"


class TestValidateUrl:
    @pytest.mark.parametrize("url", [None, "", "   ", 42])
    def test_missing_url(self, url):
        with pytest.raises(ValidationError) as exc_info:
            validate_url(url)

        assert exc_info.value.code == "URL_REQUIRED"
        assert exc_info.value.field == "url"

    @pytest.mark.parametrize(
        "url",
        ["not a url", "ftp://pinterest.com/pin/1", "https://", "https://[::1", "https://pinterest.com:notaport/pin/1"],
    )
    def test_malformed_url(self, url):
        with pytest.raises(ValidationError) as exc_info:
            validate_url(url)

        assert exc_info.value.code == "MALFORMED_URL"

    @pytest.mark.parametrize(
        "url",
        ["https://example.com/pin/1", "https://notpinterest.com/pin/1", "https://pinterest.evil.com/pin/1"],
    )
    def test_foreign_domain(self, url):
        with pytest.raises(ValidationError) as exc_info:
            validate_url(url)

        assert exc_info.value.code == "INVALID_DOMAIN"
        assert exc_info.value.details == {"field": "url", "value": url}

    def test_subdomain_of_valid_domain_is_accepted(self):
        validate_url("https://uk.pinterest.com/pin/1")

    @pytest.mark.parametrize(
        "url",
        [
            "https://pinterest.com/",
            "https://pinterest.com/search/",
            "https://pinterest.com/someuser/ideas",
            "https://pinterest.com/a/b/c/d",
            "https://pin.it/a/b",
        ],
    )
    def test_no_structural_match(self, url):
        with pytest.raises(ValidationError) as exc_info:
            validate_url(url)

        assert exc_info.value.code == "NO_STRUCTURAL_MATCH"


class TestHelpers:
    def test_extract_pin_id(self):
        assert extract_pin_id("https://pinterest.com/pin/555") == "555"
        assert extract_pin_id("https://pinterest.com/someuser/board") is None
        assert extract_pin_id("https://example.com/pin/555") is None

    def test_is_video_url(self):
        assert is_video_url("https://pinterest.com/pin/555")
        assert not is_video_url("https://pinterest.com/someuser")

    def test_extract_video_extension(self):
        assert extract_video_extension("https://v1.pinimg.com/videos/a.MP4?token=1") == "mp4"
        assert extract_video_extension("https://v1.pinimg.com/videos/a.webm") == "webm"
        assert extract_video_extension("https://v1.pinimg.com/videos/a.m3u8") is None

    def test_generate_download_filename_uses_title(self):
        name = generate_download_filename("https://pinterest.com/pin/555", title="My Video")

        assert re.fullmatch(r"My_Video_\d{4}-\d{2}-\d{2}T\d{2}-\d{2}-\d{2}\.mp4", name)

    def test_generate_download_filename_falls_back_to_pin_id(self):
        name = generate_download_filename("https://pinterest.com/pin/555", extension="webm")

        assert name.startswith("555_")
        assert name.endswith(".webm")


pin_urls = st.builds(
    lambda scheme, www, pin_id, slash: f"{scheme}://{www}pinterest.com/pin/{pin_id}{slash}",
    st.sampled_from(["http", "https"]),
    st.sampled_from(["", "www."]),
    st.integers(min_value=1, max_value=10**18),
    st.sampled_from(["", "/"]),
)


@given(pin_urls)
def test_normalization_is_a_fixed_point(url):
    normalized = normalize_url(url)

    assert normalize_url(normalized) == normalized
    assert parse_url(normalized).normalized_url == normalized
    assert normalized.startswith("https://pinterest.com/pin/")
    assert not normalized.endswith("/")


@given(st.integers(min_value=0, max_value=10**18))
def test_numeric_pin_id_round_trips(pin_id):
    assert parse_url(f"https://pinterest.com/pin/{pin_id}").pin_id == str(pin_id)


@given(st.from_regex(r"[a-z]{3,12}\.(com|net|org)", fullmatch=True))
def test_unknown_domains_are_rejected(hostname):
    assume(hostname not in VALID_DOMAINS)

    with pytest.raises(ValidationError) as exc_info:
        parse_url(f"https://{hostname}/pin/1")

    assert exc_info.value.code == "INVALID_DOMAIN"
