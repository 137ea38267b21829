from __future__ import annotations

from app.utils.validators import is_valid_asset_url, sanitize_reason, sanitize_text


def test_asset_url_accepts_absolute_storage_locations():
    assert is_valid_asset_url("https://files.example.com/roof/1.jpg") is True
    assert is_valid_asset_url("s3://ridgeline-assets/invoices/42.pdf") is True


def test_asset_url_rejects_relative_and_malformed_values():
    assert is_valid_asset_url("roof/1.jpg") is False
    assert is_valid_asset_url("ftp://files.example.com/1.jpg") is False
    assert is_valid_asset_url("https://files.example.com/has space.jpg") is False
    assert is_valid_asset_url("https://" + "a" * 1100 + ".com") is False
    assert is_valid_asset_url(None) is False


def test_sanitize_text_strips_null_and_trims():
    assert sanitize_text("  hello\x00world  ") == "helloworld"


def test_sanitize_reason_is_bounded():
    assert len(sanitize_reason("x" * 5000)) == 2000
