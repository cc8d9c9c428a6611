import pytest
from pydantic import ValidationError

from content_store import (
    ContentStoreClient,
    ContentStoreSettings,
    Query,
    configure,
    get_settings,
    get_store_client,
)


def test_empty_query_matches_everything():
    assert Query().to_groq() == ("*", {})


def test_full_query_rendering():
    query = Query(
        document_type="post",
        equals={"slug": "hello", "author.name": "ada"},
        filter="defined(publishedAt)",
        order=["publishedAt desc", "title"],
        offset=20,
        limit=10,
    )

    groq, params = query.to_groq()

    assert groq == (
        "*[_type == $type && slug == $p0 && author.name == $p1 && (defined(publishedAt))]"
        " | order(publishedAt desc, title asc) [20...30]"
    )
    assert params == {"type": "post", "p0": "hello", "p1": "ada"}


def test_invalid_field_path_is_rejected():
    with pytest.raises(ValidationError):
        Query(equals={"title) || (true": 1})


def test_invalid_order_entry_is_rejected():
    with pytest.raises(ValidationError):
        Query(order=["title sideways"])


def test_replace_returns_new_query():
    query = Query(document_type="post")

    limited = query.replace(limit=5)

    assert limited.limit == 5
    assert query.limit is None


def test_offset_without_limit_cannot_render():
    query = Query(offset=3)

    with pytest.raises(ValueError):
        query.to_groq()
    assert query.replace(limit=2).window() == (3, 5)


def test_api_url_accepts_prefixed_version():
    settings = ContentStoreSettings(project_id="abc123", api_version="v2021-03-25")

    assert settings.api_url() == "https://abc123.api.sanity.io/v2021-03-25"
    assert settings.api_url(cdn=True) == "https://abc123.apicdn.sanity.io/v2021-03-25"


def test_configure_replaces_active_settings():
    original = get_settings()
    try:
        configured = configure(ContentStoreSettings(project_id="xyz", dataset="staging"))

        assert get_settings() is configured
        with ContentStoreClient() as client:
            assert client.settings.project_id == "xyz"
    finally:
        configure(original)


def test_get_store_client_follows_configure():
    original = get_settings()
    try:
        configure(ContentStoreSettings(project_id="first"))
        first = get_store_client()
        assert get_store_client() is first

        configure(ContentStoreSettings(project_id="second"))

        assert get_store_client().settings.project_id == "second"
    finally:
        configure(original)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("1", True), ("yes", True), ("On", True), ("0", False), ("off", False), ("", False)],
)
def test_use_cdn_flag_from_environment(monkeypatch, raw, expected):
    monkeypatch.setenv("CONTENT_STORE_USE_CDN", raw)

    assert ContentStoreSettings().use_cdn is expected


def test_settings_read_from_environment(monkeypatch):
    monkeypatch.setenv("CONTENT_STORE_PROJECT_ID", "envproj")
    monkeypatch.setenv("CONTENT_STORE_DATASET", "staging")
    monkeypatch.setenv("CONTENT_STORE_TIMEOUT_SECONDS", "2.5")
    monkeypatch.delenv("CONTENT_STORE_USE_CDN", raising=False)

    settings = ContentStoreSettings()

    assert settings.project_id == "envproj"
    assert settings.dataset == "staging"
    assert settings.timeout_seconds == 2.5
    assert settings.use_cdn is False
