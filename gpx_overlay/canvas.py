"""Pillow backend that decodes, draws and encodes the overlay image."""
from __future__ import annotations

import io
import math
import tempfile
from pathlib import Path
from typing import Iterable

import numpy as np
from PIL import Image, ImageDraw, ImageFilter, ImageFont, UnidentifiedImageError

from .commands import (
    Color,
    DrawCommand,
    DrawImage,
    DrawText,
    FillGradient,
    FontSpec,
    GlowPath,
    Point,
    StrokeSegment,
)
from .config import FONT_CANDIDATES
from .errors import EncodingError


def ensure_font(size: int) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    """Pick a readable font; gracefully fallback to Pillow's default."""
    for candidate in FONT_CANDIDATES:
        if candidate.is_file():
            try:
                return ImageFont.truetype(str(candidate), size=size)
            except OSError:
                continue
    return ImageFont.load_default(size=size)


def _open_image(path: Path, mode: str) -> Image.Image:
    try:
        with Image.open(path) as img:
            img.load()
            return img.convert(mode)
    except FileNotFoundError:
        raise
    except (UnidentifiedImageError, OSError) as exc:
        raise EncodingError(f"Unable to decode image {path}: {exc}") from exc


def load_source_image(path: Path | str) -> Image.Image:
    return _open_image(Path(path), "RGB")


def load_logo(path: Path | str) -> Image.Image:
    return _open_image(Path(path), "RGBA")


def square_canvas(image: Image.Image) -> Image.Image:
    """Center-crop ``image`` to a square whose side is its shorter dimension."""
    width, height = image.size
    side = min(width, height)
    left = (width - side) // 2
    top = (height - side) // 2
    return image.crop((left, top, left + side, top + side))


def _bounds(points: Iterable[Point], pad: float) -> tuple[int, int, int, int]:
    xs, ys = zip(*points)
    return (
        int(math.floor(min(xs) - pad)),
        int(math.floor(min(ys) - pad)),
        int(math.ceil(max(xs) + pad)) + 1,
        int(math.ceil(max(ys) + pad)) + 1,
    )


def _draw_capped_line(draw: ImageDraw.ImageDraw, start: Point, end: Point, width: int, fill: int) -> None:
    draw.line([start, end], fill=fill, width=width)
    r = width / 2
    for x, y in (start, end):
        draw.ellipse((x - r, y - r, x + r, y + r), fill=fill)


class PillowCanvas:
    """Executes draw commands against an RGB image, blending by alpha."""

    def __init__(self, image: Image.Image):
        self.image = image.convert("RGB")
        self._assets: dict[Path, Image.Image] = {}

    @property
    def size(self) -> tuple[int, int]:
        return self.image.size

    def asset(self, path: Path | str) -> Image.Image:
        """Decode an RGBA asset once; later lookups reuse the decoded image."""
        path = Path(path)
        if path not in self._assets:
            self._assets[path] = load_logo(path)
        return self._assets[path]

    def measure(self, text: str, font: FontSpec) -> float:
        return float(ensure_font(font.size).getlength(text))

    def execute(self, commands: Iterable[DrawCommand]) -> None:
        for command in commands:
            if isinstance(command, StrokeSegment):
                self._stroke(command)
            elif isinstance(command, GlowPath):
                self._glow(command)
            elif isinstance(command, FillGradient):
                self._gradient(command)
            elif isinstance(command, DrawText):
                self._text(command)
            elif isinstance(command, DrawImage):
                self._image(command)
            else:
                raise TypeError(f"Unsupported draw command {command!r}")

    def _blend(self, color: Color, mask: Image.Image, origin: tuple[int, int] = (0, 0)) -> None:
        """Composite a solid colour through ``mask`` scaled by the colour's alpha."""
        alpha = color[3]
        if alpha <= 0:
            return
        if alpha < 255:
            mask = mask.point(lambda v: v * alpha // 255)
        x0, y0 = origin
        box = (x0, y0, x0 + mask.width, y0 + mask.height)
        self.image.paste(color[:3], box, mask)

    def _stroke(self, cmd: StrokeSegment) -> None:
        width = max(1, int(round(cmd.width)))
        x0, y0, x1, y1 = _bounds((cmd.start, cmd.end), width / 2 + 1)
        mask = Image.new("L", (x1 - x0, y1 - y0), 0)
        draw = ImageDraw.Draw(mask)
        start = (cmd.start[0] - x0, cmd.start[1] - y0)
        end = (cmd.end[0] - x0, cmd.end[1] - y0)
        if cmd.round_caps:
            _draw_capped_line(draw, start, end, width, 255)
        else:
            draw.line([start, end], fill=255, width=width)
        self._blend(cmd.color, mask, (x0, y0))

    def _glow(self, cmd: GlowPath) -> None:
        if not cmd.segments:
            return
        width = max(1, int(round(cmd.width)))
        dx, dy = cmd.offset
        mask = Image.new("L", self.size, 0)
        draw = ImageDraw.Draw(mask)
        for start, end in cmd.segments:
            _draw_capped_line(
                draw,
                (start[0] + dx, start[1] + dy),
                (end[0] + dx, end[1] + dy),
                width,
                255,
            )
        if cmd.blur > 0:
            mask = mask.filter(ImageFilter.GaussianBlur(radius=cmd.blur / 2))
        self._blend(cmd.color, mask)

    def _gradient(self, cmd: FillGradient) -> None:
        x0, y0, x1, y1 = cmd.box
        rows, cols = y1 - y0, x1 - x0
        if rows <= 0 or cols <= 0:
            return
        top = np.array(cmd.top_color, dtype=float)
        bottom = np.array(cmd.bottom_color, dtype=float)
        ramp = np.linspace(0.0, 1.0, rows)[:, None]
        column = np.rint(top + (bottom - top) * ramp).astype(np.uint8)
        pixels = np.ascontiguousarray(np.broadcast_to(column[:, None, :], (rows, cols, 4)))
        layer = Image.fromarray(pixels)
        self.image.paste(layer.convert("RGB"), (x0, y0), layer.getchannel("A"))

    def _text(self, cmd: DrawText) -> None:
        if not cmd.text:
            return
        font = ensure_font(cmd.font.size)
        if cmd.glow > 0:
            mask = Image.new("L", self.size, 0)
            x, y = cmd.position
            dx, dy = cmd.glow_offset
            ImageDraw.Draw(mask).text((x + dx, y + dy), cmd.text, fill=255, font=font, anchor=cmd.anchor)
            mask = mask.filter(ImageFilter.GaussianBlur(radius=cmd.glow / 2))
            self._blend(cmd.glow_color, mask)
        draw = ImageDraw.Draw(self.image, "RGBA")
        draw.text(cmd.position, cmd.text, fill=cmd.fill, font=font, anchor=cmd.anchor)

    def _image(self, cmd: DrawImage) -> None:
        logo = self.asset(cmd.source)
        self.image.paste(logo.convert("RGB"), cmd.position, logo.getchannel("A"))


def output_format(path: Path) -> str:
    return "PNG" if path.suffix.lower() == ".png" else "JPEG"


def encode_image(image: Image.Image, path: Path | str) -> Path:
    """Encode ``image`` by extension and move it into place in one step.

    The destination is only touched after encoding succeeded, so a failed run
    never leaves a partial file behind.
    """
    path = Path(path)
    buffer = io.BytesIO()
    try:
        image.save(buffer, format=output_format(path))
    except (OSError, ValueError, KeyError) as exc:
        raise EncodingError(f"Unable to encode {path}: {exc}") from exc

    path.parent.mkdir(parents=True, exist_ok=True)
    handle = tempfile.NamedTemporaryFile(
        dir=path.parent, prefix=".tmp_overlay_", suffix=path.suffix, delete=False
    )
    tmp_path = Path(handle.name)
    try:
        with handle:
            handle.write(buffer.getvalue())
        tmp_path.replace(path)
    except OSError:
        tmp_path.unlink(missing_ok=True)
        raise
    return path
