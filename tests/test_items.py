import math

import pytest

from itercluster.core import InvalidItemError, Item, ensure_unique_items
from itercluster.core.items import sorted_ids


def test_item_coerces_identifier_and_coordinates():
    item = Item(7, "1.5", 2)

    assert item.id == "7"
    assert item.x == pytest.approx(1.5)
    assert item.y == pytest.approx(2.0)
    assert isinstance(item.x, float)
    assert item.position == (1.5, 2.0)
    assert item.to_record() == {"id": "7", "x": 1.5, "y": 2.0}


def test_item_equality_only_considers_identifier():
    first = Item("a", 0.0, 0.0)
    moved = Item("a", 3.0, 4.0)

    assert first == moved
    assert hash(first) == hash(moved)
    assert len({first, moved}) == 1
    assert first != Item("b", 0.0, 0.0)


@pytest.mark.parametrize(
    "identifier, x, y",
    [
        ("", 0.0, 0.0),
        ("nan-x", math.nan, 0.0),
        ("inf-y", 0.0, math.inf),
        ("text", "east", 0.0),
        ("missing", None, 1.0),
    ],
)
def test_item_rejects_invalid_values(identifier, x, y):
    with pytest.raises(InvalidItemError):
        Item(identifier, x, y)


def test_item_is_immutable():
    item = Item("a", 0.0, 0.0)

    with pytest.raises(AttributeError):
        item.x = 5.0  # type: ignore[misc]


def test_ensure_unique_items_preserves_order():
    items = [Item("c", 0, 0), Item("a", 1, 1), Item("b", 2, 2)]

    assert ensure_unique_items(iter(items)) == tuple(items)
    assert sorted_ids(items) == ["a", "b", "c"]


def test_ensure_unique_items_rejects_duplicates_and_foreign_values():
    with pytest.raises(InvalidItemError, match="Duplicate item id 'a'"):
        ensure_unique_items([Item("a", 0, 0), Item("a", 5, 5)])

    with pytest.raises(InvalidItemError):
        ensure_unique_items([Item("a", 0, 0), (1.0, 2.0)])


def test_numeric_and_text_identifiers_name_the_same_item():
    numeric = Item(1, 0.0, 0.0)
    text = Item("1", 5.0, 5.0)

    assert numeric == text
    assert numeric.id == "1"
    with pytest.raises(InvalidItemError, match="Duplicate item id '1'"):
        ensure_unique_items([numeric, text])
