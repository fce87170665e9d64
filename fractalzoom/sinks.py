"""Destinations for rendered frames."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Sequence

import imageio
import numpy as np
import PIL.Image

from .controller import FrameId, Sink


def _pil_format_name(ext: str) -> str:
    upper = ext.upper()
    if upper == "JPG":
        return "JPEG"
    if upper == "TIF":
        return "TIFF"
    return upper


def frame_filename(frame_id: FrameId, image_format: str) -> str:
    return f"{frame_id.image}-action-{frame_id.action}.{image_format}"


class FrameDirectorySink:
    """Persist every frame as a numbered image inside ``frame_dir``."""

    def __init__(self, frame_dir: Path, image_format: str = "png"):
        self.frame_dir = Path(frame_dir)
        self.image_format = (image_format or "png").lower().lstrip(".") or "png"
        self.written: list[Path] = []

    def __call__(self, buffer: np.ndarray, frame_id: FrameId) -> None:
        frame_path = self.frame_dir / frame_filename(frame_id, self.image_format)
        self.frame_dir.mkdir(parents=True, exist_ok=True)
        PIL.Image.fromarray(buffer).save(str(frame_path), format=_pil_format_name(self.image_format))
        self.written.append(frame_path)

    def close(self) -> None:
        pass


class GifSink:
    """Append every frame to an animated GIF.

    GIF frames share one size, so frames rendered after a resize are scaled
    to the size of the first frame.
    """

    def __init__(self, path: Path, duration: float = 0.1):
        self.path = Path(path)
        self.duration = duration
        self._size: tuple[int, int] | None = None
        self._writer: Any = None

    def __call__(self, buffer: np.ndarray, frame_id: FrameId) -> None:
        if self._writer is None:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._writer = imageio.get_writer(str(self.path), mode='I', duration=self.duration, loop=0)
            self._size = (buffer.shape[1], buffer.shape[0])

        frame_array = buffer
        if (buffer.shape[1], buffer.shape[0]) != self._size:
            resized = PIL.Image.fromarray(buffer).resize(self._size, PIL.Image.LANCZOS)
            frame_array = np.array(resized, copy=True)
        self._writer.append_data(frame_array)

    def close(self) -> None:
        if self._writer is not None:
            self._writer.close()
            self._writer = None


class MemorySink:
    """Keep a copy of every frame in memory."""

    def __init__(self) -> None:
        self.frames: list[tuple[FrameId, np.ndarray]] = []

    def __call__(self, buffer: np.ndarray, frame_id: FrameId) -> None:
        self.frames.append((frame_id, buffer.copy()))

    @property
    def ids(self) -> list[FrameId]:
        return [frame_id for frame_id, _ in self.frames]

    def close(self) -> None:
        pass


class SinkGroup:
    """Forward every frame to several sinks."""

    def __init__(self, sinks: Sequence[Sink]):
        self.sinks = tuple(sinks)

    def __call__(self, buffer: np.ndarray, frame_id: FrameId) -> None:
        for sink in self.sinks:
            sink(buffer, frame_id)

    def close(self) -> None:
        for sink in self.sinks:
            close = getattr(sink, "close", None)
            if close is not None:
                close()
