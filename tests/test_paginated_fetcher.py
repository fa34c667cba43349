"""Tests for adapters/paginated_fetcher.py: page order, continuation URLs, restarts."""

import asyncio

import pytest

from adapters.paginated_fetcher import PaginatedFetcher

NEXT = "https://api.test/v1/items?page=2"


@pytest.fixture
def two_pages(fake_api):
    return fake_api(
        {
            "items": {"results": ["a", "b"], "next": NEXT},
            NEXT: {"results": ["c"], "next": None},
        }
    )


def test_stream_yields_all_records_in_order(two_pages):
    fetcher = PaginatedFetcher(two_pages)

    records = asyncio.run(fetcher.collect("items", {"q": "x"}))

    assert records == ["a", "b", "c"]
    assert two_pages.calls == [("items", {"q": "x"}), (NEXT, {})]


def test_explicit_pull_with_has_more(two_pages):
    async def scenario():
        stream = PaginatedFetcher(two_pages).stream("items")
        pages = []
        while stream.has_more:
            pages.append(await stream.next_page())
        with pytest.raises(StopAsyncIteration):
            await stream.next_page()
        return stream, pages

    stream, pages = asyncio.run(scenario())

    assert pages == [["a", "b"], ["c"]]
    assert stream.pages_fetched == 2
    assert not stream.has_more


def test_each_stream_restarts_from_first_page(two_pages):
    fetcher = PaginatedFetcher(two_pages)

    async def scenario():
        first = await fetcher.collect("items")
        second = await fetcher.collect("items")
        return first, second

    first, second = asyncio.run(scenario())

    assert first == second == ["a", "b", "c"]
    assert [path for path, _ in two_pages.calls] == ["items", NEXT, "items", NEXT]


def test_consumer_can_stop_early(two_pages):
    async def scenario():
        async for record in PaginatedFetcher(two_pages).stream("items"):
            if record == "a":
                return record

    assert asyncio.run(scenario()) == "a"
    assert len(two_pages.calls) == 1


def test_body_without_results_is_last_page(fake_api, caplog):
    api = fake_api({"broken": {"detail": "Not found."}})

    records = asyncio.run(PaginatedFetcher(api).collect("broken"))

    assert records == []
    assert "treating as last page" in caplog.text
