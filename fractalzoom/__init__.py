"""Public API for fractal zoom animations."""

from .actions import Action, Iterate, Pan, PanMethod, Resize, Simultaneous, ViewState, Zoom, ZoomMethod
from .cache import Carried, ResumeCache
from .complex_plane import Complex, Frame
from .controller import Controller, FrameId, Phase, evaluate_pixels, plane_coordinates
from .functions import (
    Function,
    Gradient,
    GridValues,
    Hue,
    InverseMandelbrot,
    Julia,
    Mandelbrot,
    Quadratic,
    Unresolved,
)
from .pixel import BLACK, ColormapPalette, colorize, hue_to_rgb
from .scene import DEFAULT_SCENE, SceneError, build_controller, load_scene

__all__ = [
    "Action",
    "BLACK",
    "Carried",
    "ColormapPalette",
    "Complex",
    "Controller",
    "DEFAULT_SCENE",
    "Frame",
    "FrameId",
    "Function",
    "Gradient",
    "GridValues",
    "Hue",
    "InverseMandelbrot",
    "Iterate",
    "Julia",
    "Mandelbrot",
    "Pan",
    "PanMethod",
    "Phase",
    "Quadratic",
    "Resize",
    "ResumeCache",
    "SceneError",
    "Simultaneous",
    "Unresolved",
    "ViewState",
    "Zoom",
    "ZoomMethod",
    "build_controller",
    "colorize",
    "evaluate_pixels",
    "hue_to_rgb",
    "load_scene",
    "plane_coordinates",
]
