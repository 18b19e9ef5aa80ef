"""Unit tests for URL normalization and host validation."""

import pytest

from crawl_pipeline.errors import InvalidUrlError
from crawl_pipeline.utils.url_normalizer import is_plausible_hostname, normalize


class TestNormalize:
    def test_adds_https_scheme_and_root_path(self):
        assert normalize("example.com") == "https://example.com/"

    def test_keeps_explicit_http_scheme(self):
        assert normalize("http://example.com/docs?q=1") == "http://example.com/docs?q=1"

    def test_trims_surrounding_whitespace(self):
        assert normalize("  https://Example.COM/Path  ") == "https://example.com/Path"

    def test_drops_default_port_and_keeps_custom_port(self):
        assert normalize("https://example.com:443/a") == "https://example.com/a"
        assert normalize("example.com:8443/a") == "https://example.com:8443/a"

    @pytest.mark.parametrize("value", ["localhost", "http://localhost:3000/app", "10.0.0.1", "256.256.256.256"])
    def test_accepts_localhost_and_dotted_quads(self, value):
        assert normalize(value).startswith(("http://", "https://"))

    @pytest.mark.parametrize(
        "value",
        [
            "sub.example.co.uk",
            "my-site.dev",
            "a1.b2.museum",
        ],
    )
    def test_accepts_multi_label_hostnames(self, value):
        assert normalize(value) == f"https://{value}/"

    def test_rejects_string_with_space(self):
        with pytest.raises(InvalidUrlError):
            normalize("not a url")

    @pytest.mark.parametrize("value", ["", "   ", "12345"])
    def test_rejects_empty_and_numeric_input(self, value):
        with pytest.raises(InvalidUrlError):
            normalize(value)

    @pytest.mark.parametrize(
        "value",
        [
            "intranet",
            "https://server/path",
            "example.c",
            "example.123",
            "-bad.example.com",
            "bad-.example.com",
            "double..dot.com",
            "under_score.example.com",
            "https://example.com:notaport/",
        ],
    )
    def test_rejects_implausible_hosts(self, value):
        with pytest.raises(InvalidUrlError) as exc_info:
            normalize(value)
        assert exc_info.value.retryable is False
        assert exc_info.value.code == "invalid_url"


class TestHostnamePlausibility:
    def test_tld_length_bounds(self):
        assert is_plausible_hostname("example.io")
        assert is_plausible_hostname("example." + "a" * 63)
        assert not is_plausible_hostname("example." + "a" * 64)

    def test_single_label_only_for_localhost(self):
        assert is_plausible_hostname("localhost")
        assert not is_plausible_hostname("router")
