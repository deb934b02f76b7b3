"""Example tests using fakes for an async service dependency."""

from __future__ import annotations

import json

import pytest

from examples._recipes import (
    RECIPES_URL,
    STORE_URL,
    FakeNetworkInterface,
    Recipe,
    RecipeService,
)
from fakes import PendableInProgressError

pytest_plugins = ("fakes.pytest_plugin",)

SOUP = Recipe("soup", ("water", "leek"))


class _OfflineError(Exception):
    pass


@pytest.fixture
def network() -> FakeNetworkInterface:
    return FakeNetworkInterface()


@pytest.fixture
def subject(network: FakeNetworkInterface) -> RecipeService:
    return RecipeService(network)


@pytest.mark.asyncio
async def test_fetch_recipes(
    network: FakeNetworkInterface, subject: RecipeService
) -> None:
    """The service decodes whatever the network returns."""
    network.get_spy.stub_success(
        json.dumps([{"name": "soup", "ingredients": ["water", "leek"]}]).encode()
    )

    assert await subject.recipes() == [SOUP]
    assert network.get_spy.calls == [RECIPES_URL]


@pytest.mark.asyncio
async def test_fetch_recipes_reraises_errors(
    network: FakeNetworkInterface, subject: RecipeService
) -> None:
    network.get_spy.stub_failure(_OfflineError())

    with pytest.raises(_OfflineError):
        await subject.recipes()


@pytest.mark.asyncio
async def test_store_recipe(
    network: FakeNetworkInterface, subject: RecipeService
) -> None:
    """Stored recipes are posted as JSON to the store endpoint."""
    network.post_spy.stub_success()

    await subject.store(SOUP)

    network.post_spy.assert_called_times(1)
    network.post_spy.assert_most_recently_called_with((SOUP.to_json(), STORE_URL))


@pytest.mark.asyncio
@pytest.mark.fakes(pendable_delay=0.01)
async def test_forgotten_stub_fails_fast(
    network: FakeNetworkInterface, subject: RecipeService
) -> None:
    """Without a stub the call falls back to PendableInProgressError."""
    with pytest.raises(PendableInProgressError):
        await subject.store(SOUP)
