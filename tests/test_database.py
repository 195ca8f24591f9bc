import pytest

from geocheckin.database import normalize_database_url


@pytest.mark.parametrize(
    "url,expected",
    [
        (
            "postgresql://u:p@h/db?sslmode=require&channel_binding=require",
            "postgresql+asyncpg://u:p@h/db?channel_binding=require",
        ),
        ("postgresql://u:p@h/db?channel_binding=require&sslmode=require", "postgresql+asyncpg://u:p@h/db?channel_binding=require"),
        ("postgresql://u:p@h:5432/db?sslmode=require", "postgresql+asyncpg://u:p@h:5432/db"),
        ("postgresql://u:p@h/db", "postgresql+asyncpg://u:p@h/db"),
        ("postgresql+asyncpg://u:p@h/db", "postgresql+asyncpg://u:p@h/db"),
    ],
)
def test_database_url_is_normalized_for_asyncpg(url, expected):
    assert normalize_database_url(url) == expected
