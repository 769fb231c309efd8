"""Point items consumed by the clustering engines."""

from __future__ import annotations

from dataclasses import dataclass, field
import math
from typing import Iterable

from .errors import InvalidItemError


@dataclass(frozen=True, slots=True)
class Item:
    """A 2D point with a stable identifier.

    Equality and hashing only consider ``id``; the coordinates are carried
    along for distance computations and display. Identifiers are stored as
    ``str(id)``, so ``Item(1, ...)`` and ``Item("1", ...)`` are the same item
    and count as duplicates in one item set.
    """

    id: str
    x: float = field(compare=False)
    y: float = field(compare=False)

    def __post_init__(self) -> None:
        identifier = str(self.id)
        if not identifier:
            raise InvalidItemError("Item requires a non-empty id")

        try:
            x = float(self.x)
            y = float(self.y)
        except (TypeError, ValueError) as exc:
            raise InvalidItemError(f"Item '{identifier}' has non-numeric coordinates") from exc

        if not (math.isfinite(x) and math.isfinite(y)):
            raise InvalidItemError(
                f"Item '{identifier}' has non-finite coordinates ({self.x!r}, {self.y!r})"
            )

        object.__setattr__(self, "id", identifier)
        object.__setattr__(self, "x", x)
        object.__setattr__(self, "y", y)

    @property
    def position(self) -> tuple[float, float]:
        return (self.x, self.y)

    def to_record(self) -> dict[str, object]:
        return {"id": self.id, "x": self.x, "y": self.y}


def ensure_unique_items(items: Iterable[Item]) -> tuple[Item, ...]:
    """Return ``items`` as a tuple, rejecting duplicate identifiers."""

    materialised: list[Item] = []
    seen: set[str] = set()
    for item in items:
        if not isinstance(item, Item):
            raise InvalidItemError(f"Expected Item instances, received {type(item)!r}")
        if item.id in seen:
            raise InvalidItemError(f"Duplicate item id '{item.id}'")
        seen.add(item.id)
        materialised.append(item)
    return tuple(materialised)


def sorted_ids(items: Iterable[Item]) -> list[str]:
    return sorted(item.id for item in items)


__all__ = ["Item", "ensure_unique_items", "sorted_ids"]
