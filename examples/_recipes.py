"""A small recipe service and a fake for its network dependency.

The service is the code under test; :class:`FakeNetworkInterface` shows how a
fake implements a protocol by forwarding each method to a spy.
"""

from __future__ import annotations

import dataclasses as dc
import json
import typing as t

from fakes import ThrowingPendableSpy

RECIPES_URL = "https://example.com/recipes"
STORE_URL = "https://example.com/recipes/store"


@dc.dataclass(frozen=True, slots=True)
class Recipe:
    """A named recipe and its ingredients."""

    name: str
    ingredients: tuple[str, ...] = ()

    def to_json(self) -> bytes:
        return json.dumps(
            {"name": self.name, "ingredients": list(self.ingredients)}
        ).encode()

    @classmethod
    def from_mapping(cls, data: t.Mapping[str, t.Any]) -> Recipe:
        return cls(data["name"], tuple(data.get("ingredients", ())))


class NetworkInterface(t.Protocol):
    """The HTTP operations :class:`RecipeService` depends on."""

    async def get(self, url: str) -> bytes: ...

    async def post(self, data: bytes, url: str) -> None: ...


class RecipeService:
    """Fetch and store recipes through a :class:`NetworkInterface`."""

    def __init__(self, network: NetworkInterface) -> None:
        self._network = network

    async def recipes(self) -> list[Recipe]:
        payload = await self._network.get(RECIPES_URL)
        return [Recipe.from_mapping(item) for item in json.loads(payload)]

    async def store(self, recipe: Recipe) -> None:
        await self._network.post(recipe.to_json(), STORE_URL)


class FakeNetworkInterface(NetworkInterface):
    """Spy-backed :class:`NetworkInterface`.

    Both spies start pending, so a test that forgets to stub them fails with
    :class:`~fakes.PendableInProgressError` after the fallback delay.
    """

    def __init__(self) -> None:
        self.get_spy: ThrowingPendableSpy[str, bytes] = ThrowingPendableSpy(
            name="get"
        )
        self.post_spy: ThrowingPendableSpy[tuple[bytes, str], None] = (
            ThrowingPendableSpy(name="post")
        )

    async def get(self, url: str) -> bytes:
        return await self.get_spy(url)

    async def post(self, data: bytes, url: str) -> None:
        await self.post_spy((data, url))
