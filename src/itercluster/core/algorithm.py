"""Step protocol shared by iterative partitioning algorithms."""

from __future__ import annotations

from abc import ABC, abstractmethod
import logging
from typing import Iterable, Iterator, Optional
import uuid

from .clusters import Cluster
from .errors import ProtocolMisuseError
from .items import Item, ensure_unique_items
from .iterations import Iteration, StepKind


logger = logging.getLogger(__name__)


class ClusteringAlgorithm(ABC):
    """Base class for algorithms that partition items one observable step at a time.

    Callers drive a run by passing the latest snapshot back into
    :meth:`advance` until it returns ``None``. The base class enforces that
    protocol; subclasses implement :meth:`_compute_next_iteration`.
    """

    name = "iterative"

    def __init__(self, items: Iterable[Item]) -> None:
        self._items = ensure_unique_items(items)
        self._positions = {item: index for index, item in enumerate(self._items)}
        self._run_id = uuid.uuid4().hex
        self._latest: Iteration | None = None
        self._finished = False

    @property
    def items(self) -> tuple[Item, ...]:
        return self._items

    @property
    def run_id(self) -> str:
        return self._run_id

    @property
    def latest(self) -> Iteration | None:
        return self._latest

    @property
    def finished(self) -> bool:
        return self._finished

    def reset(self) -> None:
        """Forget the current run so that ``advance(None)`` starts a new one."""

        self._run_id = uuid.uuid4().hex
        self._latest = None
        self._finished = False
        self._reset_state()

    def advance(self, previous: Iteration | None) -> Iteration | None:
        """Compute the snapshot that follows ``previous``.

        Returns ``None`` once the run is complete; the caller must stop
        advancing at that point.
        """

        self._check_protocol(previous)

        iteration = self._compute_next_iteration(previous)
        if iteration is None:
            self._finished = True
            self._log_completion()
            return None

        self._latest = iteration
        logger.debug(
            "%s iteration %d: %s (clusters=%d, pending=%d, noise=%d)",
            self.name,
            iteration.order,
            iteration.kind,
            len(iteration.clusters),
            len(iteration.pending),
            len(iteration.noise),
        )
        return iteration

    def iter_iterations(self) -> Iterator[Iteration]:
        """Drive a fresh run and yield every snapshot it produces."""

        if self._latest is not None or self._finished:
            self.reset()

        current: Iteration | None = None
        while True:
            current = self.advance(current)
            if current is None:
                return
            yield current

    def run_to_completion(self) -> Iteration | None:
        """Drive a fresh run and return its final snapshot."""

        final: Iteration | None = None
        for final in self.iter_iterations():
            pass
        return final

    def _new_iteration(
        self,
        order: int,
        *,
        clusters: Iterable[Cluster],
        pending: Iterable[Item],
        noise: Iterable[Item],
        kind: StepKind,
        picked: Item | None = None,
        active_cluster_id: str | None = None,
        completed_cluster_id: str | None = None,
    ) -> Iteration:
        return Iteration(
            order=order,
            clusters=tuple(clusters),
            pending=frozenset(pending),
            noise=frozenset(noise),
            kind=kind,
            picked=picked,
            active_cluster_id=active_cluster_id,
            completed_cluster_id=completed_cluster_id,
            run_id=self._run_id,
        )

    def _ordered(self, items: Iterable[Item]) -> list[Item]:
        """Return ``items`` sorted by their position in the input sequence."""

        return sorted(items, key=self._positions.__getitem__)

    def _check_protocol(self, previous: Iteration | None) -> None:
        if self._finished:
            raise ProtocolMisuseError(
                f"{self.name} run already finished; call reset() to start a new run"
            )

        if previous is None:
            if self._latest is not None:
                raise ProtocolMisuseError(
                    f"{self.name} run already started; pass the latest iteration or call reset()"
                )
            return

        if previous.run_id != self._run_id:
            raise ProtocolMisuseError(
                "Iteration was not produced by the current run of this engine"
            )
        if previous is not self._latest:
            latest_order = self._latest.order if self._latest is not None else None
            raise ProtocolMisuseError(
                f"Iteration {previous.order} is stale; the latest iteration is {latest_order}"
            )

    def _log_completion(self) -> None:
        latest = self._latest
        if latest is None:
            logger.info("%s finished without iterations (%d items)", self.name, len(self._items))
            return
        logger.info(
            "%s finished after %d iterations: %d clusters, %d noise items",
            self.name,
            latest.order,
            len(latest.clusters),
            len(latest.noise),
        )

    def _reset_state(self) -> None:
        """Hook for subclasses to clear per-run state."""

    @abstractmethod
    def _compute_next_iteration(self, previous: Optional[Iteration]) -> Optional[Iteration]:
        """Return the snapshot following ``previous`` or ``None`` when done."""


__all__ = ["ClusteringAlgorithm"]
