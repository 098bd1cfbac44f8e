"""
Frame rendering for display surfaces.
"""

import logging
import os
from io import BytesIO
from typing import Any, Dict, Iterator, List, Optional, Tuple

from PIL import Image, ImageDraw, ImageFont

logger = logging.getLogger(__name__)

DEFAULT_SIZE = (144, 72)
EDGE_PADDING = 8

FONT_DIRS = [
    "/usr/share/fonts",
    "/usr/local/share/fonts",
    "~/.fonts",
    "~/.local/share/fonts",
]


class FrameRenderer:
    """
    Draws surface text into PNG frames.

    Text lines are centered horizontally; style keys control the rest:
    background_color, text_color, font, font_size, text_align
    ('top', 'center' or 'bottom'), text_offset, line_spacing, border_size
    and border_color. An icon passed to render() is stretched over the
    whole frame and gets a one pixel text outline unless border_size says
    otherwise.
    """

    def __init__(self):
        self.font_cache: Dict[str, Any] = {}

    def render(
        self,
        text: str,
        style: Dict[str, Any],
        image_size: Tuple[int, int] = DEFAULT_SIZE,
        icon: Optional[Image.Image] = None,
    ) -> bytes:
        image = Image.new("RGB", image_size, style.get("background_color", "#000000"))
        if icon is not None:
            self._paste_icon(image, icon)

        if text:
            outline = style.get("border_size", 1 if icon is not None else 0)
            self._draw_lines(ImageDraw.Draw(image), image.size, text.split("\n"), style, outline)

        buffer = BytesIO()
        image.save(buffer, format="PNG")
        return buffer.getvalue()

    def render_fallback(
        self, glyph: str, style: Dict[str, Any], image_size: Tuple[int, int] = DEFAULT_SIZE
    ) -> bytes:
        """Plain frame with one centered glyph in a muted color."""
        muted = {**style, "text_align": "center", "text_offset": 0}
        muted.setdefault("text_color", "#888888")
        return self.render(glyph, muted, image_size)

    def _paste_icon(self, image: Image.Image, icon: Image.Image) -> None:
        if icon.size != image.size:
            icon = icon.resize(image.size, Image.Resampling.LANCZOS)
        if icon.mode == "RGBA":
            image.paste(icon, (0, 0), icon)
        else:
            image.paste(icon.convert("RGB"), (0, 0))

    def _draw_lines(
        self,
        draw: ImageDraw.ImageDraw,
        size: Tuple[int, int],
        lines: List[str],
        style: Dict[str, Any],
        outline: int,
    ) -> None:
        font = self._load_font(style.get("font", "DejaVu Sans"), style.get("font_size", 14))
        fill = style.get("text_color", "#FFFFFF")
        outline_fill = style.get("border_color", "#000000")

        for line, x, y in self._layout(draw, size, lines, font, style):
            if outline and outline > 0:
                for dx, dy in _ring(outline):
                    draw.text((x + dx, y + dy), line, font=font, fill=outline_fill)
            draw.text((x, y), line, font=font, fill=fill)

    def _layout(
        self, draw: ImageDraw.ImageDraw, size: Tuple[int, int], lines: List[str], font, style: Dict[str, Any]
    ) -> Iterator[Tuple[str, int, int]]:
        """Yield (line, x, y) origins for a vertically aligned block."""
        width, height = size
        spacing = style.get("line_spacing", 2)
        boxes = [draw.textbbox((0, 0), line, font=font) for line in lines]
        block = sum(box[3] - box[1] for box in boxes) + spacing * (len(lines) - 1)

        align = style.get("text_align", "center")
        if align == "top":
            top = EDGE_PADDING
        elif align == "bottom":
            top = height - block - EDGE_PADDING
        else:
            top = (height - block) // 2
        top += style.get("text_offset", 0)

        for line, (left, upper, right, lower) in zip(lines, boxes):
            # upper is negative for tall ascenders
            yield line, (width - (right - left)) // 2, top - upper
            top += (lower - upper) + spacing

    def _load_font(self, font_name: str, font_size: int):
        """Font for name and size, cached; Pillow's default if nothing matches."""
        key = f"{font_name}_{font_size}"
        font = self.font_cache.get(key)
        if font is not None:
            return font

        for path in self._font_candidates(font_name):
            try:
                font = ImageFont.truetype(path, font_size)
                logger.debug(f"Loaded font: {path}")
                break
            except OSError as e:
                logger.debug(f"Cannot load font {path}: {e}")

        if font is None:
            logger.warning(f"Failed to load font '{font_name}', using default")
            font = ImageFont.load_default()

        self.font_cache[key] = font
        return font

    def _font_candidates(self, font_name: str) -> Iterator[str]:
        if "/" in font_name or font_name.endswith(".ttf"):
            yield os.path.expanduser(font_name)

        wanted = font_name.lower().replace(" ", "")
        for font_dir in FONT_DIRS:
            font_dir = os.path.expanduser(font_dir)
            if not os.path.isdir(font_dir):
                continue
            for root, _dirs, files in os.walk(font_dir):
                for file in files:
                    if file.endswith((".ttf", ".otf")) and wanted in file.lower().replace(" ", ""):
                        yield os.path.join(root, file)


def _ring(radius: int) -> Iterator[Tuple[int, int]]:
    for dx in range(-radius, radius + 1):
        for dy in range(-radius, radius + 1):
            if dx or dy:
                yield dx, dy
