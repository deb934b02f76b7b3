"""Example tests observing a service while its dependency is still in flight."""

from __future__ import annotations

import asyncio

import pytest

from fakes import PendableSpy

pytest_plugins = ("fakes.pytest_plugin",)


class Loader:
    """Track whether a fetch started through *fetch* has finished."""

    def __init__(self, fetch: PendableSpy[str, str]) -> None:
        self._fetch = fetch
        self.loading = False
        self.content: str | None = None

    async def load(self, url: str) -> None:
        self.loading = True
        try:
            self.content = await self._fetch(url)
        finally:
            self.loading = False


@pytest.mark.asyncio
async def test_loading_flag_while_request_pending() -> None:
    """A pending stub keeps the request in flight until the test resolves it."""
    fetch: PendableSpy[str, str] = PendableSpy(pending_fallback="")
    loader = Loader(fetch)

    task = asyncio.create_task(loader.load("https://example.com"))
    await asyncio.sleep(0.01)
    assert loader.loading
    fetch.assert_called_with("https://example.com")

    fetch.resolve_stub("<html/>")
    await task

    assert not loader.loading
    assert loader.content == "<html/>"


@pytest.mark.asyncio
@pytest.mark.fakes(pendable_delay=0.01)
async def test_unresolved_request_falls_back() -> None:
    """Tests that never resolve the stub still finish quickly."""
    fetch: PendableSpy[str, str] = PendableSpy(pending_fallback="offline")
    loader = Loader(fetch)

    await loader.load("https://example.com")

    assert loader.content == "offline"
