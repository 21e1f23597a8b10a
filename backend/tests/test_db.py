import pytest

from needled.core.db import _build_engine, normalize_database_url


@pytest.mark.parametrize(
    "url,expected",
    [
        ("postgres://u:p@db.example.com/needled", "postgresql+asyncpg://u:p@db.example.com/needled"),
        ("postgresql://u:p@db.example.com/needled", "postgresql+asyncpg://u:p@db.example.com/needled"),
        ("postgresql+asyncpg://u:p@db.example.com/needled", "postgresql+asyncpg://u:p@db.example.com/needled"),
        ("sqlite+aiosqlite:///./needled.db", "sqlite+aiosqlite:///./needled.db"),
    ],
)
def test_normalize_database_url(url, expected):
    assert normalize_database_url(url) == expected


def test_hosted_postgres_url_uses_asyncpg_without_sslmode():
    engine = _build_engine("postgres://u:p@db.example.com/needled?sslmode=require&channel_binding=require")

    assert engine.dialect.driver == "asyncpg"
    assert "sslmode" not in engine.url.query
    assert "channel_binding" not in engine.url.query


def test_sqlite_url_is_left_alone():
    engine = _build_engine("sqlite+aiosqlite:///:memory:")
    assert engine.dialect.driver == "aiosqlite"
