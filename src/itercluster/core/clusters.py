"""Cluster values produced by the clustering engines."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Iterable

from .items import Item, sorted_ids


@dataclass(frozen=True, slots=True)
class Cluster:
    """An identified group of items plus the frontier of its latest growth round.

    Clusters are values: growing one returns a new ``Cluster`` so that earlier
    iterations keep the state they were created with.
    """

    id: str
    members: frozenset[Item] = frozenset()
    frontier: frozenset[Item] = frozenset()
    name: str | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Cluster requires a non-empty id")

        object.__setattr__(self, "members", frozenset(self.members))
        object.__setattr__(self, "frontier", frozenset(self.frontier))

        if not self.frontier <= self.members:
            stray = sorted_ids(self.frontier - self.members)
            raise ValueError(
                f"Cluster '{self.id}' frontier contains non-members: {', '.join(stray)}"
            )

    @classmethod
    def seeded(
        cls,
        cluster_id: str,
        seed: Item,
        neighbours: Iterable[Item],
        *,
        name: str | None = None,
    ) -> Cluster:
        """Create a cluster from a core ``seed`` and its claimed neighbours."""

        frontier = frozenset(neighbours)
        return cls(id=cluster_id, members=frontier | {seed}, frontier=frontier, name=name)

    def grow(self, added: Iterable[Item], *, carried: Iterable[Item] = ()) -> Cluster:
        """Return a copy with ``added`` joined and set as the new frontier.

        ``carried`` holds previous frontier items that were not scanned yet;
        they stay in the frontier alongside the new members.
        """

        added = frozenset(added)
        return replace(
            self,
            members=self.members | added,
            frontier=added | frozenset(carried),
        )

    @property
    def display_name(self) -> str:
        return self.name or self.id

    @property
    def size(self) -> int:
        return len(self.members)

    def __contains__(self, item: object) -> bool:
        return item in self.members

    def __len__(self) -> int:
        return len(self.members)

    def to_record(self) -> dict[str, object]:
        """Return a JSON-serialisable representation of the cluster."""

        return {
            "cluster_id": self.id,
            "name": self.display_name,
            "size": self.size,
            "member_ids": sorted_ids(self.members),
            "frontier_ids": sorted_ids(self.frontier),
        }


__all__ = ["Cluster"]
