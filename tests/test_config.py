"""
Settings parsing and validation.
"""
import pytest
from pydantic import ValidationError

from app.core.config import Settings


def test_cors_wildcard():
    assert Settings(CORS_ORIGINS=" * ").cors_origins_list == ["*"]


def test_cors_list_is_split_and_trimmed():
    s = Settings(CORS_ORIGINS="https://a.example, https://b.example,")
    assert s.cors_origins_list == ["https://a.example", "https://b.example"]


def test_unknown_log_format_rejected():
    with pytest.raises(ValidationError):
        Settings(LOG_FORMAT="xml")


def test_default_range_cannot_exceed_max():
    with pytest.raises(ValidationError):
        Settings(DEFAULT_RANGE_DAYS=30, MAX_RANGE_DAYS=14)


def test_negative_retries_rejected():
    with pytest.raises(ValidationError):
        Settings(SNAPSHOT_WRITE_RETRIES=-1)
