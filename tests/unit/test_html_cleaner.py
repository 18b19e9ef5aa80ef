"""Unit tests for boilerplate stripping and main-content extraction."""

from types import SimpleNamespace

import pytest

from crawl_pipeline.utils import html_cleaner as html_cleaner_module
from crawl_pipeline.utils.html_cleaner import CleaningOptions, HtmlCleaner


BASE_URL = "https://example.com/guide/page"


@pytest.fixture
def cleaner() -> HtmlCleaner:
    return HtmlCleaner()


@pytest.fixture
def no_readability(monkeypatch):
    """Fail loudly if a test unexpectedly reaches the readability fallback."""

    def _unexpected(*_args, **_kwargs):
        raise AssertionError("readability fallback should not run")

    monkeypatch.setattr(html_cleaner_module, "extract_article", _unexpected)


class TestMainContentExtraction:
    def test_keeps_main_and_drops_chrome(self, cleaner, article_html, no_readability):
        cleaned = cleaner.clean(article_html, base_url=BASE_URL)
        assert cleaned.html.startswith("<main>")
        assert "Field Guide to Pipelines" in cleaned.html
        assert "Copyright Example" not in cleaned.html
        assert "Related" not in cleaned.html
        assert "window.analytics" not in cleaned.html

    def test_is_idempotent(self, cleaner, article_html, no_readability):
        once = cleaner.clean(article_html, base_url=BASE_URL).html
        twice = cleaner.clean(once, base_url=BASE_URL).html
        assert twice == once

    def test_resolves_relative_links(self, cleaner, article_html, no_readability):
        cleaned = cleaner.clean(article_html, base_url=BASE_URL)
        assert 'href="https://example.com/docs/intro"' in cleaned.html

    def test_picks_longest_of_several_articles(self, cleaner, no_readability):
        html = (
            "<body><article><p>short</p></article>"
            "<article><p>this one has a great deal more text in it</p></article></body>"
        )
        cleaned = cleaner.clean(html)
        assert "great deal more" in cleaned.html
        assert "short" not in cleaned.html

    def test_falls_back_to_readability_without_landmarks(self, cleaner, monkeypatch):
        calls = []

        def _fake_extract(html, url, options):
            calls.append(url)
            return SimpleNamespace(success=True, content="<div><p>Readable body</p><nav>menu</nav></div>", error=None)

        monkeypatch.setattr(html_cleaner_module, "extract_article", _fake_extract)
        cleaned = cleaner.clean("<body><div><p>Readable body</p></div></body>", base_url=BASE_URL)

        assert calls == [BASE_URL]
        assert cleaned.html == "<article><div><p>Readable body</p></div></article>"
        # The wrapped result is recognised as already clean.
        assert cleaner.clean(cleaned.html, base_url=BASE_URL).html == cleaned.html
        assert len(calls) == 1

    def test_uses_body_when_readability_finds_nothing(self, cleaner, monkeypatch):
        monkeypatch.setattr(
            html_cleaner_module,
            "extract_article",
            lambda html, url, options: SimpleNamespace(success=False, content="", error="too short"),
        )
        cleaned = cleaner.clean("<html><body><div>tiny</div><footer>f</footer></body></html>")
        assert cleaned.html == "<article><div>tiny</div></article>"


class TestBase64Images:
    def test_blanks_inline_images(self, cleaner, article_html, no_readability):
        cleaned = cleaner.clean(article_html, base_url=BASE_URL)
        assert "base64" not in cleaned.html
        assert 'alt="dot"' in cleaned.html

    def test_keeps_inline_images_when_disabled(self, cleaner, article_html, no_readability):
        options = CleaningOptions(extract_main_content=True, remove_base64_images=False)
        cleaned = cleaner.clean(article_html, options, base_url=BASE_URL)
        assert "data:image/png;base64," in cleaned.html


class TestWholeDocumentMode:
    def test_keeps_navigation_but_drops_scripts(self, cleaner, article_html, no_readability):
        options = CleaningOptions(extract_main_content=False, remove_base64_images=True)
        cleaned = cleaner.clean(article_html, options, base_url=BASE_URL)
        assert 'href="https://example.com/about"' in cleaned.html
        assert "<script" not in cleaned.html
        assert "<style" not in cleaned.html


class TestDegradation:
    @pytest.mark.parametrize("html", ["", "   ", None])
    def test_empty_input_gives_empty_document(self, cleaner, html):
        cleaned = cleaner.clean(html)
        assert cleaned.html == ""
        assert cleaned.is_empty

    def test_malformed_html_does_not_raise(self, cleaner, no_readability):
        cleaned = cleaner.clean("<main><p>unclosed <b>bold<div></main></span>")
        assert "unclosed" in cleaned.html

    def test_unexpected_failure_returns_input(self, cleaner, monkeypatch):
        def _boom(self, html, options, base_url):
            raise RuntimeError("parser exploded")

        monkeypatch.setattr(HtmlCleaner, "_clean", _boom)
        assert cleaner.clean("<p>keep me</p>").html == "<p>keep me</p>"
