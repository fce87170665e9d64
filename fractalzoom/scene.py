"""Build controllers from scene descriptions.

A scene is a plain mapping, usually loaded from a JSON file::

    {
        "function": {"type": "julia", "c": [-0.8, 0.156]},
        "state": {"image_size": 256, "center": [0, 0], "iterations": 200, "depth": 4.0},
        "setup": [{"type": "zoom", "target": 1.0, "steps": 5}],
        "sequence": [
            {"type": "simultaneous", "actions": [
                {"type": "pan", "target": [0.1, 0.2], "steps": 20},
                {"type": "iterate", "target": 400, "steps": 20}
            ]}
        ]
    }
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, Mapping, Optional, Sequence

from .actions import Action, Iterate, Pan, PanMethod, Resize, Simultaneous, ViewState, Zoom
from .complex_plane import Complex
from .controller import Controller, Palette, Sink
from .functions import Function, Gradient, InverseMandelbrot, Julia, Mandelbrot, Quadratic
from .pixel import colorize


class SceneError(ValueError):
    """Raised for scene descriptions that cannot be turned into a controller."""


DEFAULT_SCENE: dict[str, Any] = {
    "function": {"type": "mandelbrot"},
    "state": {"image_size": 256, "center": [0.0, 0.0], "iterations": 200, "depth": 4.0},
    "setup": [
        {
            "type": "simultaneous",
            "actions": [
                {"type": "pan", "target": [-0.745078913977592, 0.11846019897722749], "steps": 1},
                {"type": "zoom", "target": 0.01, "steps": 30},
                {"type": "iterate", "target": 500, "steps": 30},
            ],
        },
    ],
    "sequence": [
        {"type": "zoom", "target": 0.0001, "steps": 20},
        {
            "type": "simultaneous",
            "actions": [
                {"type": "pan", "target": [-0.74499, 0.1184], "steps": 10},
                {"type": "iterate", "target": 1000, "steps": 10},
            ],
        },
    ],
}


def _require(mapping: Mapping[str, Any], key: str, where: str) -> Any:
    if key not in mapping:
        raise SceneError(f"{where} is missing '{key}'.")
    return mapping[key]


def _number(value: Any, convert: Callable[[Any], Any], where: str) -> Any:
    try:
        return convert(value)
    except (TypeError, ValueError) as exc:
        raise SceneError(f"{where} must be a number, got {value!r}.") from exc


def parse_complex(value: Any, where: str) -> Complex:
    if isinstance(value, Mapping):
        return Complex(
            _number(value.get("real", 0.0), float, f"{where} real part"),
            _number(value.get("imaginary", 0.0), float, f"{where} imaginary part"),
        )
    if isinstance(value, (list, tuple)) and len(value) == 2:
        try:
            return Complex(float(value[0]), float(value[1]))
        except (TypeError, ValueError) as exc:
            raise SceneError(f"{where} must contain two numbers.") from exc
    raise SceneError(f"{where} must be [real, imaginary] or {{\"real\": ..., \"imaginary\": ...}}.")


def parse_function(spec: Mapping[str, Any]) -> Function:
    if not isinstance(spec, Mapping):
        raise SceneError(f"function must be an object, got {spec!r}.")
    kind = str(_require(spec, "type", "function")).lower()
    if kind == "mandelbrot":
        return Mandelbrot()
    if kind in ("inverse-mandelbrot", "inverse_mandelbrot"):
        return InverseMandelbrot()
    if kind == "julia":
        return Julia(parse_complex(_require(spec, "c", "julia function"), "julia 'c'"))
    if kind == "gradient":
        return Gradient()
    if kind == "quadratic":
        return Quadratic()
    raise SceneError(f"Unknown function type '{kind}'.")


def _steps(spec: Mapping[str, Any], kind: str) -> int:
    return _number(_require(spec, "steps", f"{kind} action"), int, f"{kind} action 'steps'")


def parse_action(spec: Mapping[str, Any]) -> Action:
    if not isinstance(spec, Mapping):
        raise SceneError(f"Actions must be objects, got {spec!r}.")
    kind = str(_require(spec, "type", "action")).lower()

    if kind == "simultaneous":
        children = _require(spec, "actions", "simultaneous action")
        if not isinstance(children, (list, tuple)):
            raise SceneError("simultaneous 'actions' must be a list of actions.")
        return Simultaneous([parse_action(child) for child in children])

    steps = _steps(spec, kind)
    if kind == "zoom":
        if ("factor" in spec) == ("target" in spec):
            raise SceneError("zoom action needs exactly one of 'factor' or 'target'.")
        if "factor" in spec:
            factor = _number(spec["factor"], float, "zoom 'factor'")
            if not factor > 0:
                raise SceneError("zoom 'factor' must be positive.")
            return Zoom.by_factor(factor, steps)
        target = _number(spec["target"], float, "zoom 'target'")
        if not target > 0:
            raise SceneError("zoom 'target' must be positive.")
        return Zoom.to_target(target, steps)
    if kind == "pan":
        method_name = str(spec.get("method", PanMethod.LINEAR.value)).lower()
        try:
            method = PanMethod(method_name)
        except ValueError as exc:
            raise SceneError(f"Unknown pan method '{method_name}'.") from exc
        return Pan(steps=steps, target=parse_complex(_require(spec, "target", "pan action"), "pan 'target'"), method=method)
    if kind == "iterate":
        target = _number(_require(spec, "target", "iterate action"), int, "iterate 'target'")
        return Iterate(steps=steps, target=target)
    if kind == "resize":
        target = _number(_require(spec, "target", "resize action"), int, "resize 'target'")
        if target < 1:
            raise SceneError("resize 'target' must be at least 1.")
        return Resize(steps=steps, target=target)
    raise SceneError(f"Unknown action type '{kind}'.")


def parse_state(spec: Mapping[str, Any]) -> ViewState:
    default = ViewState()
    state = ViewState(
        image_size=_number(spec.get("image_size", default.image_size), int, "state 'image_size'"),
        center=parse_complex(spec["center"], "state 'center'") if "center" in spec else default.center,
        iterations=_number(spec.get("iterations", default.iterations), int, "state 'iterations'"),
        depth=_number(spec.get("depth", default.depth), float, "state 'depth'"),
    )
    if state.image_size < 1:
        raise SceneError("state 'image_size' must be at least 1.")
    if state.iterations < 1:
        raise SceneError("state 'iterations' must be at least 1.")
    if not state.depth > 0:
        raise SceneError("state 'depth' must be positive.")
    return state


def parse_actions(specs: Optional[Sequence[Mapping[str, Any]]]) -> list[Action]:
    if specs is not None and not isinstance(specs, (list, tuple)):
        raise SceneError("'setup' and 'sequence' must be lists of actions.")
    return [parse_action(spec) for spec in specs or ()]


def load_scene(path: Path) -> dict[str, Any]:
    """Read a JSON scene file."""

    try:
        with open(path, "r", encoding="utf-8") as handle:
            scene = json.load(handle)
    except json.JSONDecodeError as exc:
        raise SceneError(f"{path} is not valid JSON: {exc}") from exc
    if not isinstance(scene, dict):
        raise SceneError(f"{path} must contain a JSON object.")
    return scene


def build_controller(
    scene: Mapping[str, Any],
    *,
    sink: Optional[Sink] = None,
    backend: str = "python",
    palette: Palette = colorize,
    device: Optional[str] = None,
    overrides: Optional[Mapping[str, Any]] = None,
) -> Controller:
    """Wire a :class:`Controller` from ``scene``.

    ``overrides`` replaces entries of the scene's initial state.
    """

    state_spec = scene.get("state") or {}
    if not isinstance(state_spec, Mapping):
        raise SceneError("scene 'state' must be an object.")
    state_spec = dict(state_spec)
    state_spec.update({key: value for key, value in (overrides or {}).items() if value is not None})

    return Controller(
        parse_function(_require(scene, "function", "scene")),
        setup=parse_actions(scene.get("setup")),
        sequence=parse_actions(scene.get("sequence")),
        sink=sink,
        state=parse_state(state_spec),
        backend=backend,
        palette=palette,
        device=device,
    )
