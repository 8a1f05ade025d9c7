"""Undo/redo history for the points of a plan being edited."""

import logging
from typing import Callable, List, Sequence, Tuple, Union

from .points import InjectionPoint

logger = logging.getLogger(__name__)

# Past states kept for undo.
MAX_HISTORY_SIZE = 20

PointState = Tuple[InjectionPoint, ...]


class PointHistory:
    """
    Snapshots of the point list with bounded undo and unbounded redo.

    States are tuples of frozen points, so a snapshot can never change after
    it has been recorded.

    Example:
        history = PointHistory(points)
        history.set(lambda pts: pts + (new_point,))
        history.undo()
    """

    def __init__(self, initial: Sequence[InjectionPoint] = (), max_size: int = MAX_HISTORY_SIZE):
        self.max_size = max_size
        self._past: List[PointState] = []
        self._present: PointState = tuple(initial)
        self._future: List[PointState] = []

    @property
    def state(self) -> PointState:
        return self._present

    @property
    def can_undo(self) -> bool:
        return bool(self._past)

    @property
    def can_redo(self) -> bool:
        return bool(self._future)

    @property
    def history_size(self) -> int:
        return len(self._past) + len(self._future)

    def set(
        self,
        new_state: Union[Sequence[InjectionPoint], Callable[[PointState], Sequence[InjectionPoint]]]
    ) -> None:
        """
        Record a new state and clear the redo stack.

        Args:
            new_state: The new points, or a function of the current points.
                A state equal to the current one is not recorded.
        """
        if callable(new_state):
            new_state = new_state(self._present)
        new_state = tuple(new_state)

        if new_state == self._present:
            return

        self._past.append(self._present)
        if len(self._past) > self.max_size:
            del self._past[:-self.max_size]
        self._present = new_state
        self._future = []

    def undo(self) -> None:
        if not self._past:
            return
        self._future.insert(0, self._present)
        self._present = self._past.pop()

    def redo(self) -> None:
        if not self._future:
            return
        self._past.append(self._present)
        self._present = self._future.pop(0)

    def reset(self, new_state: Sequence[InjectionPoint] = ()) -> None:
        """Replace the state and forget all history."""
        self._past = []
        self._present = tuple(new_state)
        self._future = []
        logger.debug("History reset with %d point(s)", len(self._present))

    # Convenience edits

    def add(self, point: InjectionPoint) -> None:
        self.set(lambda pts: pts + (point,))

    def remove(self, point_id: str) -> None:
        self.set(lambda pts: tuple(p for p in pts if p.id != point_id))

    def replace(self, point: InjectionPoint) -> None:
        """Swap in an edited point with the same id."""
        self.set(lambda pts: tuple(point if p.id == point.id else p for p in pts))
