import json

import pytest

from fractalzoom.actions import Iterate, Pan, PanMethod, Resize, Simultaneous, ViewState, Zoom, ZoomMethod
from fractalzoom.complex_plane import Complex
from fractalzoom.functions import Gradient, InverseMandelbrot, Julia, Mandelbrot, Quadratic
from fractalzoom.scene import (
    DEFAULT_SCENE,
    SceneError,
    build_controller,
    load_scene,
    parse_action,
    parse_function,
    parse_state,
)
from fractalzoom.sinks import MemorySink


@pytest.mark.parametrize(
    "spec, kind",
    [
        ({"type": "mandelbrot"}, Mandelbrot),
        ({"type": "inverse-mandelbrot"}, InverseMandelbrot),
        ({"type": "gradient"}, Gradient),
        ({"type": "Quadratic"}, Quadratic),
    ],
)
def test_parse_function(spec, kind):
    assert type(parse_function(spec)) is kind


def test_parse_julia():
    julia = parse_function({"type": "julia", "c": [-0.8, 0.156]})
    assert isinstance(julia, Julia)
    assert julia.c == Complex(-0.8, 0.156)

    julia = parse_function({"type": "julia", "c": {"real": 0.285, "imaginary": 0.01}})
    assert julia.c == Complex(0.285, 0.01)


def test_parse_actions():
    zoom = parse_action({"type": "zoom", "target": 0.001, "steps": 10})
    assert isinstance(zoom, Zoom)
    assert zoom.method is ZoomMethod.TARGET
    assert zoom.remaining == 10

    assert parse_action({"type": "zoom", "factor": 0.9, "steps": 2}).method is ZoomMethod.FACTOR

    pan = parse_action({"type": "pan", "target": [1, 2], "steps": 3, "method": "logarithmic"})
    assert isinstance(pan, Pan)
    assert pan.target == Complex(1.0, 2.0)
    assert pan.method is PanMethod.LOGARITHMIC

    composite = parse_action({
        "type": "simultaneous",
        "actions": [
            {"type": "iterate", "target": 500, "steps": 4},
            {"type": "resize", "target": 64, "steps": 4},
        ],
    })
    assert isinstance(composite, Simultaneous)
    assert [type(action) for action in composite.actions] == [Iterate, Resize]


@pytest.mark.parametrize(
    "spec",
    [
        {"type": "spin", "steps": 1},
        {"steps": 1},
        {"type": "zoom", "steps": 1},
        {"type": "zoom", "factor": 0.5, "target": 1.0, "steps": 1},
        {"type": "zoom", "target": -1.0, "steps": 1},
        {"type": "zoom", "factor": 0.5},
        {"type": "zoom", "factor": 0.5, "steps": "many"},
        {"type": "pan", "target": [1.0], "steps": 1},
        {"type": "pan", "target": [0, 0], "steps": 1, "method": "cubic"},
        {"type": "resize", "target": 0, "steps": 1},
        {"type": "simultaneous"},
        {"type": "simultaneous", "actions": 5},
        {"type": "simultaneous", "actions": ["zoom"]},
        {"type": "iterate", "target": "many", "steps": 1},
        {"type": "resize", "target": [64], "steps": 1},
        {"type": "zoom", "factor": None, "steps": 1},
        {"type": "zoom", "factor": -1.0, "steps": 1},
        {"type": "zoom", "factor": 0, "steps": 1},
        {"type": "zoom", "target": "deep", "steps": 1},
        {"type": "pan", "target": {"real": "x"}, "steps": 1},
        {"type": "pan", "target": {"real": 0.5, "imaginary": None}, "steps": 1},
        {"type": "pan", "target": [0, 0], "steps": None},
    ],
)
def test_invalid_actions(spec):
    with pytest.raises(SceneError):
        parse_action(spec)


def test_parse_state_defaults_and_validation():
    assert parse_state({}) == ViewState()
    assert parse_state({"image_size": 32, "center": [0.5, -0.5]}) == ViewState(image_size=32, center=Complex(0.5, -0.5))
    for bad in (
        {"image_size": 0},
        {"iterations": 0},
        {"depth": 0.0},
        {"image_size": "large"},
        {"iterations": None},
        {"depth": [4.0]},
        {"center": {"imaginary": "up"}},
    ):
        with pytest.raises(SceneError):
            parse_state(bad)


def test_unknown_function():
    with pytest.raises(SceneError):
        parse_function({"type": "newton"})


def test_load_scene(tmp_path):
    path = tmp_path / "scene.json"
    path.write_text(json.dumps(DEFAULT_SCENE), encoding="utf-8")
    assert load_scene(path) == DEFAULT_SCENE

    path.write_text("[1, 2, 3]", encoding="utf-8")
    with pytest.raises(SceneError):
        load_scene(path)

    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(SceneError):
        load_scene(path)


def test_build_controller_with_overrides():
    scene = {
        "function": {"type": "gradient"},
        "state": {"image_size": 64, "center": [1.0, 1.0], "depth": 2.0},
        "setup": [{"type": "zoom", "factor": 0.5, "steps": 1}],
        "sequence": [{"type": "resize", "target": 6, "steps": 2}],
    }
    sink = MemorySink()
    controller = build_controller(scene, sink=sink, overrides={"image_size": 2, "depth": None})

    assert controller.state == ViewState(image_size=2, center=Complex(1.0, 1.0), depth=2.0)
    assert controller.run() == 2
    assert controller.state.depth == 1.0
    assert [buffer.shape for _, buffer in sink.frames] == [(4, 4, 3), (6, 6, 3)]


def test_default_scene_builds():
    controller = build_controller(DEFAULT_SCENE)
    assert isinstance(controller.function, Mandelbrot)
    assert len(controller.setup) == 1
    assert len(controller.sequence) == 2


@pytest.mark.parametrize(
    "scene",
    [
        {"function": "mandelbrot"},
        {"function": {"type": "mandelbrot"}, "state": [256]},
        {"function": {"type": "mandelbrot"}, "sequence": {"type": "zoom", "factor": 0.5, "steps": 1}},
        {"function": {"type": "mandelbrot"}, "setup": [{"type": "iterate", "target": "more", "steps": 2}]},
    ],
)
def test_malformed_scenes_raise_scene_errors(scene):
    with pytest.raises(SceneError):
        build_controller(scene)
