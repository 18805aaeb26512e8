"""Unit tests for taskhub.utils.validation"""

from __future__ import annotations

import pytest

from taskhub.utils.validation import (
    normalize_email,
    validate_email,
    validate_record_id,
    validate_slug,
    validate_url,
)


class TestEmail:
    def test_normalize(self):
        assert normalize_email("  Ada@Example.COM ") == "ada@example.com"

    @pytest.mark.parametrize("email", ["ada@example.com", "a.b+tag@sub.example.io"])
    def test_valid(self, email):
        assert validate_email(email)

    @pytest.mark.parametrize("email", ["", "ada", "ada@", "@example.com", "ada@example", "a" * 250 + "@x.io"])
    def test_invalid(self, email):
        assert not validate_email(email)


class TestUrl:
    @pytest.mark.parametrize("url", ["http://localhost:3000", "https://app.example.com/path"])
    def test_valid(self, url):
        assert validate_url(url)

    @pytest.mark.parametrize("url", ["", "ftp://example.com", "example.com", "http://" + "a" * 600])
    def test_invalid(self, url):
        assert not validate_url(url)


class TestSlug:
    @pytest.mark.parametrize("slug", ["acme", "acme-corp", "acme-1", "42"])
    def test_valid(self, slug):
        assert validate_slug(slug)

    @pytest.mark.parametrize("slug", ["", "Acme", "acme--corp", "-acme", "acme-", "acme corp"])
    def test_invalid(self, slug):
        assert not validate_slug(slug)


class TestRecordId:
    def test_uuid(self):
        assert validate_record_id("3f2b8c1e-6d4a-4f7e-9a0b-1c2d3e4f5a6b")

    @pytest.mark.parametrize("value", ["", "has space", "x" * 65, "semi;colon"])
    def test_invalid(self, value):
        assert not validate_record_id(value)
