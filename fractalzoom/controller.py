"""Drive a sequence of actions and rasterize every resulting view."""

from __future__ import annotations

from typing import Callable, NamedTuple, Optional, Sequence

import numpy as np

from .actions import Action, ViewState
from .cache import Carried, ResumeCache
from .complex_plane import Complex, Frame
from .functions import Function, GridValues, Hue, Unresolved
from .pixel import colorize

BACKENDS = ("python", "tensorflow")


class FrameId(NamedTuple):
    """Ordering tag of an emitted frame: the 1-based action and image counters."""

    action: int
    image: int


class Phase(NamedTuple):
    actions: Sequence[Action]
    render: bool


Sink = Callable[[np.ndarray, FrameId], None]
Palette = Callable[[np.ndarray], np.ndarray]


def plane_coordinates(pixel_coordinates: np.ndarray, state: ViewState) -> np.ndarray:
    """Map every pixel of a ``state.image_size`` square onto the complex plane.

    Columns run along the real axis; rows run down the imaginary axis so the
    first row is the top of the view.
    """

    scale = np.float64(state.depth) / np.float64(state.image_size)
    offset = np.float64(state.depth) / 2.0
    scaled = pixel_coordinates * scale
    reals = scaled - offset + np.float64(state.center.real)
    imaginaries = np.float64(state.center.imaginary) - (scaled - offset)

    coordinates = np.empty((imaginaries.size, reals.size), dtype=np.complex128)
    coordinates.real = reals[np.newaxis, :]
    coordinates.imag = imaginaries[:, np.newaxis]
    return coordinates


def evaluate_pixels(function: Function, coordinates: np.ndarray, limit: int, frame: Frame, carried: Carried) -> GridValues:
    """Evaluate ``function`` one pixel at a time."""

    rows, cols = coordinates.shape
    hue = np.zeros((rows, cols), dtype=np.float64)
    unresolved = np.zeros((rows, cols), dtype=bool)
    z = np.zeros((rows, cols), dtype=np.complex128)
    iterations = np.zeros((rows, cols), dtype=np.int64)

    for y in range(rows):
        for x in range(cols):
            coordinate = Complex.from_complex(coordinates[y, x])
            previous = None
            if carried.hit[y, x]:
                previous = Unresolved(Complex.from_complex(carried.z[y, x]), int(carried.iterations[y, x]))

            value = function.value(coordinate, limit, frame, previous)
            if isinstance(value, Hue):
                hue[y, x] = value.value
            else:
                unresolved[y, x] = True
                z[y, x] = complex(value.z)
                iterations[y, x] = value.iteration

    return GridValues(hue=hue, unresolved=unresolved, z=z, iterations=iterations)


class Controller:
    """Owns the live view, the pixel buffer and the resume cache of a run."""

    def __init__(
        self,
        function: Function,
        setup: Sequence[Action] = (),
        sequence: Sequence[Action] = (),
        *,
        sink: Optional[Sink] = None,
        state: Optional[ViewState] = None,
        backend: str = "python",
        palette: Palette = colorize,
        device: Optional[str] = None,
    ):
        if backend not in BACKENDS:
            raise ValueError(f"Unknown backend '{backend}'. Valid choices: {', '.join(BACKENDS)}.")

        self.function = function
        self.setup = tuple(setup)
        self.sequence = tuple(sequence)
        self.sink = sink
        self.backend = backend
        self.palette = palette
        self.device = device

        self._state = state if state is not None else ViewState()
        self._pixel_coordinates = np.empty(0, dtype=np.float64)
        self._buffer = np.zeros((0, 0, 3), dtype=np.uint8)
        self._cache = ResumeCache()
        self.resize(self._state.image_size)

    @property
    def state(self) -> ViewState:
        return self._state

    @property
    def frame(self) -> Frame:
        return self._state.frame

    @property
    def buffer(self) -> np.ndarray:
        return self._buffer

    @property
    def coordinates(self) -> np.ndarray:
        view = self._pixel_coordinates.view()
        view.flags.writeable = False
        return view

    @property
    def cache(self) -> ResumeCache:
        return self._cache

    def resize(self, image_size: int) -> None:
        """Reallocate the coordinate table and a black buffer for ``image_size``."""

        if image_size < 1:
            raise ValueError(f"image size must be positive, got {image_size}.")
        self._pixel_coordinates = np.arange(image_size, dtype=np.float64)
        self._buffer = np.zeros((image_size, image_size, 3), dtype=np.uint8)

    def _adopt(self, state: ViewState) -> None:
        if state.image_size != self._state.image_size:
            self.resize(state.image_size)
        self._state = state

    def run(self) -> int:
        """Play the setup phase silently, then render every step of the sequence.

        Returns the number of frames handed to the sink.
        """

        frame_id = FrameId(action=0, image=0)
        rendered = 0
        self._cache = ResumeCache()

        phases = (
            Phase(actions=self.setup, render=False),
            Phase(actions=self.sequence, render=True),
        )

        for phase in phases:
            for action in phase.actions:
                frame_id = frame_id._replace(action=frame_id.action + 1)
                while (new_state := action.next(self._state)) is not None:
                    frame_id = frame_id._replace(image=frame_id.image + 1)
                    self._adopt(new_state)
                    if phase.render:
                        self.render(frame_id)
                        rendered += 1

        return rendered

    def render(self, frame_id: FrameId) -> np.ndarray:
        """Rasterize the current view into the buffer and emit it."""

        state = self._state
        frame = state.frame
        coordinates = plane_coordinates(self._pixel_coordinates, state)
        carried = self._cache.lookup(coordinates)

        if self.backend == "tensorflow":
            values = self.function.evaluate_grid(coordinates, state.iterations, frame, carried, device=self.device)
        else:
            values = evaluate_pixels(self.function, coordinates, state.iterations, frame, carried)

        self._cache.update(coordinates, values.unresolved, values.z, values.iterations)

        colors = self.palette(values.hue)
        self._buffer[...] = np.where(values.unresolved[..., np.newaxis], np.uint8(0), colors)

        if self.sink is not None:
            self.sink(self._buffer, frame_id)
        return self._buffer
