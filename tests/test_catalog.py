from unittest.mock import MagicMock, patch

import pytest

from animestream.catalog import CatalogQueryEngine
from animestream.config import Settings
from animestream.errors import CatalogFetchError
from animestream.jikan import JikanClient
from animestream.models import CatalogEntry, CatalogFilterState, CatalogPage


def make_page(*titles, has_next=True):
    entries = tuple(CatalogEntry(id=i, title=t, image_url="", slug=t.lower()) for i, t in enumerate(titles, 1))
    return CatalogPage(entries=entries, has_next_page=has_next)


@pytest.fixture
def client():
    client = MagicMock(spec=JikanClient)
    client.fetch_page.return_value = make_page("Naruto", "Bleach")
    return client


@pytest.fixture
def engine(client):
    return CatalogQueryEngine(client, Settings())


def requested(client):
    return [c.args[0] for c in client.fetch_page.call_args_list]


def test_filter_state_transitions():
    state = CatalogFilterState(page=4, genre_id=2, search_query="bleach")
    assert state.with_genre(7) == CatalogFilterState(page=1, genre_id=7, search_query="bleach")
    assert state.with_search("naruto") == CatalogFilterState(page=1, genre_id=2, search_query="naruto")
    assert state.with_page(5) == CatalogFilterState(page=5, genre_id=2, search_query="bleach")
    assert state.with_search("   ").search_query is None


def test_filter_state_rejects_invalid_values():
    with pytest.raises(ValueError):
        CatalogFilterState(page=0)
    with pytest.raises(ValueError):
        CatalogFilterState(search_query="  ")


def test_refresh_replaces_list(engine, client):
    assert engine.refresh()
    assert [e.title for e in engine.entries] == ["Naruto", "Bleach"]

    client.fetch_page.return_value = make_page("One Piece")
    engine.next_page()
    assert [e.title for e in engine.entries] == ["One Piece"]
    assert requested(client)[-1] == CatalogFilterState(page=2)


def test_paging_keeps_filters(engine, client):
    engine.set_genre(1)
    engine.query_submitted("naruto")
    engine.next_page()
    assert engine.state == CatalogFilterState(page=2, genre_id=1, search_query="naruto")

    engine.previous_page()
    assert engine.state == CatalogFilterState(page=1, genre_id=1, search_query="naruto")


def test_new_filter_resets_page(engine):
    engine.refresh()
    engine.next_page()
    engine.next_page()
    assert engine.state.page == 3

    engine.set_genre(4)
    assert engine.state == CatalogFilterState(page=1, genre_id=4)

    engine.next_page()
    engine.query_submitted("bleach")
    assert engine.state == CatalogFilterState(page=1, genre_id=4, search_query="bleach")


def test_navigation_flags(engine, client):
    client.fetch_page.side_effect = [make_page("A"), make_page("B"), make_page("C", has_next=False)]
    engine.refresh()
    assert engine.has_previous is False
    engine.next_page()
    engine.next_page()

    assert engine.state.page == 3
    assert engine.has_previous is True
    assert engine.has_next is False
    assert engine.next_page() is False
    assert client.fetch_page.call_count == 3

    snap = engine.snapshot()
    assert snap.has_previous is True and snap.has_next is False


def test_previous_page_is_noop_on_first_page(engine, client):
    engine.refresh()
    assert engine.previous_page() is False
    assert client.fetch_page.call_count == 1


def test_debounce(engine, client):
    assert engine.query_text_changed("na") is False
    assert engine.query_text_changed("  na ") is False
    assert client.fetch_page.call_count == 0

    assert engine.query_text_changed("nar") is True
    assert requested(client) == [CatalogFilterState(search_query="nar")]

    engine.next_page()
    assert engine.query_text_changed("") is True
    assert requested(client)[-1] == CatalogFilterState()
    assert engine.state == CatalogFilterState()


def test_clearing_text_keeps_genre(engine, client):
    engine.set_genre(1)
    engine.query_text_changed("naruto")
    engine.query_text_changed("")
    assert requested(client)[-1] == CatalogFilterState(genre_id=1)


def test_submit_searches_short_text_but_not_blank(engine, client):
    assert engine.query_submitted("  ") is False
    assert client.fetch_page.call_count == 0

    assert engine.query_submitted(" k ") is True
    assert requested(client) == [CatalogFilterState(search_query="k")]


def test_failure_keeps_previous_list_and_surfaces_error(engine, client):
    engine.refresh()
    before = engine.entries

    client.fetch_page.side_effect = CatalogFetchError("Could not reach the catalog service")
    assert engine.next_page() is False
    assert engine.entries == before
    assert engine.state == CatalogFilterState(page=1)
    assert engine.has_next is True
    assert engine.snapshot().error == "Could not reach the catalog service"

    client.fetch_page.side_effect = None
    client.fetch_page.return_value = make_page("Bleach", has_next=False)
    assert engine.retry() is True
    assert requested(client)[-1] == CatalogFilterState(page=2)
    assert engine.state == CatalogFilterState(page=2)
    assert engine.error is None
    assert engine.has_next is False


def test_stale_response_is_dropped(engine, client):
    """A response for an older request must not overwrite a newer one."""
    fresh = make_page("Naruto Shippuden", has_next=False)

    def slow_then_fast(state):
        if state.search_query == "nar":
            client.fetch_page.side_effect = lambda s: fresh
            engine.query_text_changed("naruto")
            return make_page("Stale")
        return fresh

    client.fetch_page.side_effect = slow_then_fast
    assert engine.query_text_changed("nar") is False

    assert [e.title for e in engine.entries] == ["Naruto Shippuden"]
    assert engine.state.search_query == "naruto"
    assert engine.snapshot().loading is False


def test_load_genres_delegates(engine, client):
    client.genres.return_value = ["Action"]
    assert engine.load_genres() == ["Action"]


@pytest.mark.parametrize(
    "payload",
    [
        {"data": [{"mal_id": 2, "title": "B", "images": "broken"}]},
        {"data": [None]},
    ],
)
def test_malformed_page_keeps_list_and_reports_error(payload):
    jikan = JikanClient(Settings(jikan_base_url="https://jikan.test/v4"))
    engine = CatalogQueryEngine(jikan, Settings())
    good = {"pagination": {"has_next_page": True}, "data": [{"mal_id": 1, "title": "Naruto"}]}

    with patch("requests.Session.get") as mock_get:
        mock_get.return_value = MagicMock(status_code=200, json=MagicMock(return_value=good))
        assert engine.refresh() is True
        mock_get.return_value = MagicMock(status_code=200, json=MagicMock(return_value=payload))
        assert engine.next_page() is False

    snap = engine.snapshot()
    assert [e.title for e in snap.entries] == ["Naruto"]
    assert snap.state == CatalogFilterState(page=1)
    assert snap.loading is False
    assert snap.error and snap.error.startswith("Malformed catalog page")


def test_unexpected_client_error_does_not_leave_engine_loading(engine, client):
    client.fetch_page.side_effect = RuntimeError("bug")
    with pytest.raises(RuntimeError):
        engine.refresh()
    assert engine.snapshot().loading is False
