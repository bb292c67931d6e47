"""
Unit tests for URL classification.

Run: python3 -m pytest migration/__tests__/test_classifier.py -v
"""

import pytest

from migration.classifier import UrlClassifier
from migration.__tests__.migration_test_utils import CDN_DOMAIN


class TestShouldMigrate:
    """Tests for host eligibility."""

    @pytest.mark.parametrize("value", [None, "", "   ", 42, b"http://a/x.png", ["http://a/x.png"]])
    def test_empty_or_non_string(self, classifier, value):
        """Should reject empty and non-string input."""
        assert classifier.should_migrate(value) is False

    @pytest.mark.parametrize("value", ["/static/a.png", "ftp://host/a.png", "a.png", "//host/a.png"])
    def test_non_http_urls(self, classifier, value):
        """Should reject anything that isn't an absolute http(s) URL."""
        assert classifier.should_migrate(value) is False

    def test_plain_http_any_host(self, classifier):
        """Should migrate plain http:// URLs on any host."""
        assert classifier.should_migrate("http://random.example.org/a.png") is True
        assert classifier.should_migrate("HTTP://Random.Example.org/a.png") is True

    def test_legacy_host_over_https(self, classifier):
        """Should migrate legacy hosts regardless of scheme."""
        assert classifier.should_migrate("https://img.legacy.example/a.png") is True
        assert classifier.should_migrate("https://yanxuan.nosdn.127.net/abc123") is True

    def test_https_non_legacy_host(self, classifier):
        """Should leave secure non-legacy hosts alone."""
        assert classifier.should_migrate("https://images.example.org/a.png") is False

    def test_already_migrated_domain(self, classifier):
        """Should not re-migrate URLs already under the migrated domain."""
        url = f"{CDN_DOMAIN}/legacy-migration/2024-05-01/abc.png"
        assert classifier.should_migrate(url) is False

    def test_already_migrated_plain_http_domain(self):
        """Should honor the migrated-domain prefix even over plain http."""
        classifier = UrlClassifier(migrated_domain="http://cdn.shop.example/")
        assert classifier.should_migrate("http://cdn.shop.example/a.png") is False

    def test_empty_migrated_domain_disables_prefix_check(self):
        """Should not treat every URL as migrated when the domain is unset."""
        classifier = UrlClassifier(migrated_domain="")
        assert classifier.should_migrate("http://cdn.shop.example/a.png") is True

    @pytest.mark.parametrize("value", [
        "http://127.0.0.1/a.png",
        "http://localhost/a.png",
        "http://localhost:8360/static/a.png",
        "https://LOCALHOST/a.png",
        "http://127.0.0.2/a.png",
        "http://127.1.2.3:8080/a.png",
        "http://[::1]/a.png",
        "http://shop.localhost/a.png",
    ])
    def test_loopback(self, classifier, value):
        """Should never migrate loop-back hosts."""
        assert classifier.should_migrate(value) is False

    def test_loopback_lookalike_still_migrates(self, classifier):
        """Should only skip real loop-back addresses."""
        assert classifier.should_migrate("http://127.example.org/a.png") is True

    def test_object_store_domain(self, classifier):
        """Should skip URLs already in the object store."""
        assert classifier.should_migrate("http://bucket.oss-cn-hangzhou.aliyuncs.com/a.png") is False

    def test_surrounding_whitespace_is_ignored(self, classifier):
        """Should classify the trimmed value."""
        assert classifier.should_migrate("  http://random.example.org/a.png \n") is True


class TestLooksLikeImage:
    """Tests for content likelihood."""

    @pytest.mark.parametrize("url", [
        "https://images.example.org/a.jpg",
        "https://images.example.org/a.JPEG",
        "https://images.example.org/a.png?x-oss-process=resize",
        "https://images.example.org/a.gif#frame",
        "https://images.example.org/a.webp",
        "https://images.example.org/a.bmp",
        "https://images.example.org/a.svg",
    ])
    def test_image_extensions(self, classifier, url):
        """Should accept known image extensions, with query or fragment."""
        assert classifier.looks_like_image(url) is True

    def test_legacy_host_without_extension(self, classifier):
        """Should treat anything on a legacy host as an image."""
        assert classifier.looks_like_image("http://yanxuan.nosdn.127.net/4a6d0c8a2f") is True

    @pytest.mark.parametrize("url", [
        "http://shop.example.org/about.html",
        "http://shop.example.org/a.png.zip",
        "http://shop.example.org/pngs/",
        "",
    ])
    def test_non_images(self, classifier, url):
        """Should reject non-image paths on non-legacy hosts."""
        assert classifier.looks_like_image(url) is False


class TestIsMigratableImage:
    """Both checks must pass."""

    def test_http_page_not_migrated(self, classifier):
        """Should not migrate an http page that isn't an image."""
        assert classifier.is_migratable_image("http://shop.example.org/about.html") is False

    def test_https_image_not_on_legacy_host(self, classifier):
        """Should not migrate a secure image that isn't on a legacy host."""
        assert classifier.is_migratable_image("https://images.example.org/a.png") is False

    def test_http_image(self, classifier):
        assert classifier.is_migratable_image("http://img.legacy.example/a.png") is True

    def test_legacy_host_match_is_case_insensitive(self):
        classifier = UrlClassifier(legacy_host_patterns=["Nos.Netease.com"])
        assert classifier.is_legacy_host("https://X.NOS.NETEASE.COM/abc") is True

    def test_malformed_url_is_not_legacy(self, classifier):
        """Should not raise on URLs urllib can't parse."""
        assert classifier.is_legacy_host("http://[::1/a.png") is False
