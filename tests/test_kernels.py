import numpy as np
import pytest

pytest.importorskip("tensorflow")

from fractalzoom.actions import Iterate, Simultaneous, ViewState, Zoom
from fractalzoom.cache import Carried
from fractalzoom.complex_plane import Complex
from fractalzoom.controller import Controller, FrameId, plane_coordinates
from fractalzoom.functions import Gradient, InverseMandelbrot, Julia, Mandelbrot, Quadratic, Unresolved
from fractalzoom.kernels import escape_time
from fractalzoom.sinks import MemorySink


def test_escape_time_counts_iterations():
    z0 = np.zeros(3, dtype=np.complex128)
    c = np.array([0.0, 3.0, 2.0], dtype=np.complex128)
    z, iterations, escaped = escape_time(z0, c, np.zeros(3, dtype=np.int64), 25)

    assert escaped.tolist() == [False, True, True]
    assert iterations.tolist() == [25, 1, 2]
    assert z[0] == 0
    assert z[1] == 3.0


def test_escape_time_resumes_from_start_counts():
    c = np.array([0.251 + 0j])
    z_mid, n_mid, escaped_mid = escape_time(np.zeros(1, dtype=np.complex128), c, np.zeros(1, dtype=np.int64), 30)
    assert not escaped_mid[0]

    resumed = escape_time(z_mid, c, n_mid, 300)
    fresh = escape_time(np.zeros(1, dtype=np.complex128), c, np.zeros(1, dtype=np.int64), 300)
    assert resumed[2][0] and fresh[2][0]
    assert resumed[1][0] == fresh[1][0]


@pytest.mark.parametrize("function", [Mandelbrot(), InverseMandelbrot(), Julia(Complex(-0.8, 0.156))])
def test_grid_matches_per_pixel_evaluation_exactly(function):
    state = ViewState(image_size=16, center=Complex(-0.5, 0.0), iterations=60, depth=3.0)
    coordinates = plane_coordinates(np.arange(16, dtype=np.float64), state)
    grid = function.evaluate_grid(coordinates, state.iterations, state.frame)

    for y in range(16):
        for x in range(16):
            value = function.value(Complex.from_complex(coordinates[y, x]), state.iterations, state.frame)
            if isinstance(value, Unresolved):
                assert grid.unresolved[y, x], (y, x)
                assert complex(value.z) == grid.z[y, x], (y, x)
                assert value.iteration == grid.iterations[y, x], (y, x)
            else:
                assert not grid.unresolved[y, x], (y, x)
                assert value.value == grid.hue[y, x], (y, x)


def test_grid_mandelbrot_known_points():
    coordinates = np.array([[0j, 3 + 0j, -1 + 0j]])
    grid = Mandelbrot().evaluate_grid(coordinates, 50, ViewState().frame)
    assert grid.unresolved.tolist() == [[True, False, True]]
    assert grid.hue[0, 1] == 0.0
    assert grid.iterations[0, 0] == 50


def test_grid_resumes_from_carried_values():
    coordinates = np.array([[0.251 + 0j, 0j]])
    first = Mandelbrot().evaluate_grid(coordinates, 30, ViewState().frame)
    carried = Carried(hit=first.unresolved, z=first.z, iterations=first.iterations)

    resumed = Mandelbrot().evaluate_grid(coordinates, 300, ViewState().frame, carried)
    fresh = Mandelbrot().evaluate_grid(coordinates, 300, ViewState().frame)
    assert resumed.unresolved.tolist() == fresh.unresolved.tolist() == [[False, True]]
    assert resumed.hue[0, 0] == fresh.hue[0, 0]


@pytest.mark.parametrize("function", [Gradient(), Quadratic()])
def test_non_iterative_grids_match_per_pixel(function):
    state = ViewState(image_size=5, center=Complex(0.3, -0.2), depth=2.0)
    coordinates = plane_coordinates(np.arange(5, dtype=np.float64), state)
    grid = function.evaluate_grid(coordinates, state.iterations, state.frame)
    assert not grid.unresolved.any()
    for y in range(5):
        for x in range(5):
            value = function.value(Complex.from_complex(coordinates[y, x]), state.iterations, state.frame)
            assert grid.hue[y, x] == pytest.approx(value.value)


def test_tensorflow_backend_run():
    sink = MemorySink()
    controller = Controller(
        Mandelbrot(),
        sequence=[Zoom.to_target(1.0, steps=2), Iterate(steps=2, target=80)],
        sink=sink,
        state=ViewState(image_size=12, center=Complex(-0.75, 0.1), iterations=40),
        backend="tensorflow",
    )
    assert controller.run() == 4
    first = sink.frames[-1][1]

    again = controller.render(FrameId(action=2, image=5))
    assert np.array_equal(first, again)
    assert [frame_id.image for frame_id, _ in sink.frames] == [1, 2, 3, 4, 5]


@pytest.mark.parametrize("function", [Mandelbrot(), InverseMandelbrot(), Julia(Complex(-0.8, 0.156))])
def test_backends_render_identical_frames(function):
    frames = {}
    for backend in ("python", "tensorflow"):
        sink = MemorySink()
        controller = Controller(
            function,
            sequence=[Simultaneous([Zoom.to_target(0.5, steps=3), Iterate(steps=3, target=90)])],
            sink=sink,
            state=ViewState(image_size=10, center=Complex(-0.6, 0.2), iterations=30, depth=3.0),
            backend=backend,
        )
        controller.run()
        frames[backend] = [buffer for _, buffer in sink.frames]

    assert len(frames["python"]) == len(frames["tensorflow"]) == 3
    for expected, actual in zip(frames["python"], frames["tensorflow"]):
        assert np.array_equal(expected, actual)
