"""Stepwise interpolation of the view parameters of a zoom sequence."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field, replace
from typing import Optional, Sequence

from .complex_plane import Complex, Frame


@dataclass(frozen=True)
class ViewState:
    """Parameters that describe what a single frame renders."""

    image_size: int = 512
    center: Complex = Complex(0.0, 0.0)
    iterations: int = 200
    depth: float = 4.0

    @property
    def frame(self) -> Frame:
        return Frame.around(self.center, self.depth)


class ZoomMethod(enum.Enum):
    FACTOR = "factor"
    TARGET = "target"


class PanMethod(enum.Enum):
    LINEAR = "linear"
    LOGARITHMIC = "logarithmic"


class Action:
    """A budgeted transformation of a :class:`ViewState`.

    Every call to :meth:`next` consumes one step. Once the budget is spent the
    action returns ``None`` on every further call.
    """

    def next(self, state: ViewState) -> Optional[ViewState]:
        raise NotImplementedError


@dataclass(eq=False)
class _Budgeted(Action):
    steps: int
    _remaining: int = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._remaining = int(self.steps)

    @property
    def remaining(self) -> int:
        return max(self._remaining, 0)

    def next(self, state: ViewState) -> Optional[ViewState]:
        if self._remaining <= 0:
            return None
        try:
            return self._advance(state, self._remaining)
        finally:
            self._remaining -= 1

    def _advance(self, state: ViewState, steps: int) -> ViewState:
        raise NotImplementedError


def _approach(value: int, target: int, steps: int) -> int:
    return value + int((target - value) / steps)


@dataclass(eq=False)
class Zoom(_Budgeted):
    """Scale the depth of the view, either by a fixed factor or toward a target."""

    method: ZoomMethod = ZoomMethod.FACTOR
    amount: float = 1.0

    def __post_init__(self) -> None:
        super().__post_init__()
        # Depth stays positive and real only for positive factors and targets.
        if not self.amount > 0:
            raise ValueError(f"zoom {self.method.value} must be positive, got {self.amount!r}")

    @classmethod
    def by_factor(cls, factor: float, steps: int) -> Zoom:
        return cls(steps=steps, method=ZoomMethod.FACTOR, amount=factor)

    @classmethod
    def to_target(cls, target: float, steps: int) -> Zoom:
        return cls(steps=steps, method=ZoomMethod.TARGET, amount=target)

    def _advance(self, state: ViewState, steps: int) -> ViewState:
        if self.method is ZoomMethod.TARGET:
            # Split the remaining log-distance evenly over the remaining steps,
            # recomputed every call so the last step lands on the target.
            ratio = self.amount / state.depth
            factor = ratio ** (1.0 / steps)
        else:
            factor = self.amount
        return replace(state, depth=state.depth * factor)


@dataclass(eq=False)
class Pan(_Budgeted):
    """Move the center toward ``target``."""

    target: Complex = Complex(0.0, 0.0)
    method: PanMethod = PanMethod.LINEAR

    def _advance(self, state: ViewState, steps: int) -> ViewState:
        if self.method is PanMethod.LOGARITHMIC:
            raise NotImplementedError(
                "logarithmic panning is undefined when the distance to the target is zero or changes sign"
            )
        center = state.center + (self.target - state.center) / Complex(float(steps), 0.0)
        return replace(state, center=center)


@dataclass(eq=False)
class Iterate(_Budgeted):
    """Move the iteration limit toward ``target``."""

    target: int = 200

    def _advance(self, state: ViewState, steps: int) -> ViewState:
        return replace(state, iterations=_approach(state.iterations, self.target, steps))


@dataclass(eq=False)
class Resize(_Budgeted):
    """Move the image size toward ``target``."""

    target: int = 512

    def _advance(self, state: ViewState, steps: int) -> ViewState:
        return replace(state, image_size=_approach(state.image_size, self.target, steps))


class Simultaneous(Action):
    """Apply several actions within the same step.

    Children are applied in order, each one receiving the state produced by
    the previous child. The composite lives as long as its longest child.
    """

    def __init__(self, actions: Sequence[Action]):
        self.actions = tuple(actions)

    def __repr__(self) -> str:
        return f"Simultaneous(actions={list(self.actions)!r})"

    def next(self, state: ViewState) -> Optional[ViewState]:
        advanced = False
        for action in self.actions:
            new_state = action.next(state)
            if new_state is not None:
                state = new_state
                advanced = True
        return state if advanced else None
