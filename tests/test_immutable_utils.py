"""Tests for immutable_utils."""

from typing import List

from immutables import Map
from pydantic import BaseModel

from minirex import create_action, to_dict, to_immutable, to_pydantic


class Settings(BaseModel):
    name: str
    tags: list


class TestImmutableUtils:
    def test_to_immutable_converts_nested_structures(self):
        frozen = to_immutable({"a": [1, {"b": 2}], "c": {3}})
        assert isinstance(frozen, Map)
        assert frozen["a"][0] == 1
        assert isinstance(frozen["a"][1], Map)
        assert frozen["c"] == frozenset({3})

    def test_to_immutable_converts_pydantic_models(self):
        frozen = to_immutable(Settings(name="store", tags=["x"]))
        assert frozen == Map(name="store", tags=("x",))

    def test_to_dict_reverses_to_immutable(self):
        data = {"a": [1, {"b": 2}], "name": "x"}
        assert to_dict(to_immutable(data)) == data

    def test_to_pydantic(self):
        model = to_pydantic(Map(name="store", tags=("x", "y")), Settings)
        assert model == Settings(name="store", tags=["x", "y"])


class Owner(BaseModel):
    name: str
    settings: Settings
    aliases: List[str] = []


class TestNestedModels:
    def test_to_pydantic_rebuilds_nested_models(self):
        owner = Owner(name="root", settings=Settings(name="store", tags=["x"]), aliases=["a", "b"])
        frozen = to_immutable(owner)
        assert isinstance(frozen["settings"], Map)
        assert frozen["aliases"] == ("a", "b")

        rebuilt = to_pydantic(frozen, Owner)
        assert isinstance(rebuilt.settings, Settings)
        assert rebuilt == owner

    def test_action_payload_from_model_is_frozen(self):
        set_owner = create_action("[Owner] Set", to_immutable)
        action = set_owner(Owner(name="root", settings=Settings(name="s", tags=[])))
        assert action["payload"]["settings"] == Map(name="s", tags=())
        assert to_pydantic(action["payload"], Owner).settings.name == "s"
