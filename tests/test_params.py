"""Tests for switchyard.routing.params — captured route parameters."""

import pytest

from switchyard.routing.params import Params


@pytest.fixture
def params() -> Params:
    return Params((("isdn", "123"), ("page", "2"), ("ratio", "0.5"), ("slug", "abc")))


class TestParamsMapping:
    def test_get(self, params: Params) -> None:
        assert params.get("isdn") == "123"
        assert params.get("missing") is None
        assert params.get("missing", "fallback") == "fallback"

    def test_getitem(self, params: Params) -> None:
        assert params["slug"] == "abc"
        with pytest.raises(KeyError):
            params["missing"]

    def test_order_is_preserved(self, params: Params) -> None:
        assert list(params) == ["isdn", "page", "ratio", "slug"]
        assert len(params) == 4

    def test_contains(self, params: Params) -> None:
        assert "isdn" in params
        assert "ISDN" not in params

    def test_empty(self) -> None:
        assert Params() == {}
        assert len(Params()) == 0


class TestTypedAccessors:
    def test_get_int(self, params: Params) -> None:
        assert params.get_int("page") == 2
        assert params.get_int("slug", 0) == 0
        assert params.get_int("missing", 7) == 7

    def test_get_float(self, params: Params) -> None:
        assert params.get_float("ratio") == 0.5
        assert params.get_float("slug") is None


class TestImmutability:
    def test_no_attribute_assignment(self, params: Params) -> None:
        with pytest.raises(AttributeError):
            params._items = ()  # type: ignore[misc]

    def test_no_item_assignment(self, params: Params) -> None:
        with pytest.raises(TypeError):
            params["isdn"] = "999"  # type: ignore[index]

    def test_to_dict_is_a_copy(self, params: Params) -> None:
        copy = params.to_dict()
        copy["isdn"] = "999"
        assert params["isdn"] == "123"

    def test_hashable_and_equal(self) -> None:
        a = Params((("id", "1"),))
        b = Params((("id", "1"),))
        assert a == b
        assert hash(a) == hash(b)
        assert a == {"id": "1"}
