"""Tests for the debounced customer search."""

import asyncio

import pytest

from django_washplan.search import DebouncedCustomerSearch

DELAY = 0.01


@pytest.mark.asyncio
class TestDebouncedCustomerSearch:
    """Tests for DebouncedCustomerSearch."""

    async def test_only_last_query_is_searched(self, backend):
        """Rapid keystrokes collapse into a single lookup for the final query."""
        search = DebouncedCustomerSearch(backend, delay=DELAY)

        search.update("as")
        search.update("ash")
        search.update("asha")
        await search.wait()

        assert backend.search_calls == ["asha"]
        assert [c.name for c in search.results] == ["Asha Rao"]
        assert search.has_searched
        assert search.error is None

    async def test_waits_for_quiet_period(self, backend):
        search = DebouncedCustomerSearch(backend, delay=0.2)

        search.update("asha")
        await asyncio.sleep(0.05)

        assert backend.search_calls == []
        search.close()

    async def test_short_query_clears_results(self, backend):
        search = DebouncedCustomerSearch(backend, delay=DELAY)
        search.update("ravi")
        await search.wait()
        assert search.results

        search.update("r")
        await search.wait()

        assert search.results == []
        assert search.has_searched is False
        assert backend.search_calls == ["ravi"]

    async def test_newer_query_supersedes_in_flight_lookup(self, backend):
        """A lookup still running when a new query arrives never publishes."""
        backend.search_delay = 0.05
        search = DebouncedCustomerSearch(backend, delay=DELAY)

        search.update("asha")
        await asyncio.sleep(DELAY * 3)
        search.update("ravi")
        await search.wait()

        assert [c.name for c in search.results] == ["Ravi Kumar"]

    async def test_close_ignores_late_results(self, backend):
        backend.search_delay = 0.05
        search = DebouncedCustomerSearch(backend, delay=DELAY)

        search.update("asha")
        await asyncio.sleep(DELAY * 3)
        search.close()
        await asyncio.sleep(0.1)

        assert search.results == []
        assert search.has_searched is False

    async def test_updates_after_close_are_ignored(self, backend):
        search = DebouncedCustomerSearch(backend, delay=DELAY)
        search.close()

        search.update("asha")
        await search.wait()

        assert backend.search_calls == []

    async def test_backend_failure_is_reported(self, backend):
        backend.fail_lookups = True
        search = DebouncedCustomerSearch(backend, delay=DELAY)

        search.update("asha")
        await search.wait()

        assert search.error == "Failed to search customers"
        assert search.has_searched
        assert search.results == []
        assert search.loading is False

    async def test_limit_passed_to_backend(self, backend, customer):
        search = DebouncedCustomerSearch(backend, delay=DELAY, limit=1)

        search.update("ra")
        await search.wait()

        assert search.results == [customer]


class TestSearchDefaults:

    def test_defaults_from_settings(self, backend, settings):
        settings.WASHPLAN_SEARCH_DEBOUNCE_SECONDS = 0.5
        settings.WASHPLAN_SEARCH_LIMIT = 5

        search = DebouncedCustomerSearch(backend)

        assert search.delay == 0.5
        assert search.limit == 5
        assert search.min_length == 2
