"""
Hierarchical progress reporting.

Each phase pushes a level sized to its expected number of steps, each
unit of work advances the current level by one step, and finishing the
phase pops the level. `level()` wraps push/pop in a context manager so
a level is popped on every exit path.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Iterator, Literal

ProgressKind = Literal["push", "step", "pop"]


@dataclass(frozen=True)
class ProgressEvent:
    kind: ProgressKind
    depth: int  # depth after the change
    steps: int  # expected steps of the level concerned
    fraction: float  # overall completion, 0.0 - 1.0


ProgressListener = Callable[[ProgressEvent], None]


@dataclass
class _Level:
    steps: int
    done: int = 0
    offset: float = 0.0  # overall fraction when the level was pushed
    span: float = 1.0  # share of the overall progress this level covers


class ProgressStack:
    """Nested progress levels with listeners."""

    def __init__(self) -> None:
        self._levels: list[_Level] = []
        self._fraction = 0.0
        self._listeners: list[ProgressListener] = []

    @property
    def depth(self) -> int:
        return len(self._levels)

    @property
    def fraction(self) -> float:
        return self._fraction

    def add_listener(self, listener: ProgressListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: ProgressListener) -> None:
        self._listeners.remove(listener)

    def _notify(self, kind: ProgressKind, steps: int) -> None:
        event = ProgressEvent(kind=kind, depth=self.depth, steps=steps, fraction=self._fraction)
        for listener in list(self._listeners):
            listener(event)

    def _step_span(self) -> float:
        """Share of overall progress covered by one step of the current level."""
        if not self._levels:
            return 1.0
        current = self._levels[-1]
        return current.span / current.steps if current.steps > 0 else 0.0

    def push(self, steps: int) -> None:
        """Start a level of `steps` steps inside the current step."""
        if steps < 0:
            raise ValueError("steps must be >= 0")
        self._levels.append(_Level(steps=steps, offset=self._fraction, span=self._step_span()))
        self._notify("push", steps)

    def step(self) -> None:
        """Complete one step of the current level."""
        if not self._levels:
            raise RuntimeError("No progress level to step")
        current = self._levels[-1]
        current.done += 1
        if current.steps > 0:
            done = min(current.done, current.steps)
            self._fraction = current.offset + current.span * done / current.steps
        self._notify("step", current.steps)

    def pop(self) -> None:
        """Finish the current level."""
        if not self._levels:
            raise RuntimeError("No progress level to pop")
        finished = self._levels.pop()
        self._fraction = finished.offset + finished.span
        self._notify("pop", finished.steps)

    @contextmanager
    def level(self, steps: int) -> Iterator[ProgressStack]:
        """Push a level for the duration of the block; always popped on exit."""
        self.push(steps)
        try:
            yield self
        finally:
            self.pop()
