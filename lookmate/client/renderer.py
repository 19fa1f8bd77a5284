"""Rasterize a fitting-room composition to a PNG data URL with Pillow.

Geometry follows the on-screen fitting room: the canvas is the display size
multiplied by ``RENDER_SCALE``; each layer image is centered, sized to
``LAYER_BASE_WIDTH_RATIO`` of the canvas width, then translated by its (x, y)
display offset, scaled, and rotated clockwise by ``rotation`` degrees. The
avatar (or a neutral placeholder figure) is drawn first, visible layers on top
in list order.

Rendering is best-effort: one attempt, and any failure to load or decode an
image yields ``None`` with a warning logged instead of an exception.
"""
import base64
import binascii
import io
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional
from urllib.parse import unquote_to_bytes

import httpx
from PIL import Image, ImageDraw

from lookmate.client.composition import FittingLayer
from lookmate.client.config import ClientSettings

logger = logging.getLogger("lookmate.client.renderer")

BACKGROUND = (243, 244, 246, 255)
PLACEHOLDER = (209, 213, 219, 255)
# a scaled layer may cover at most this many canvases
MAX_LAYER_AREA = 16


@dataclass
class RenderTarget:
    """What the fitting room shows: avatar plus layers and their image sources."""

    layers: List[FittingLayer]
    image_urls: Dict[str, str] = field(default_factory=dict)
    avatar_url: Optional[str] = None


class RenderError(Exception):
    pass


def decode_data_url(url: str) -> bytes:
    header, sep, payload = url.partition(",")
    if not sep:
        raise RenderError("malformed data url")
    if header.endswith(";base64"):
        try:
            return base64.b64decode(payload, validate=True)
        except binascii.Error as e:
            raise RenderError("bad base64 payload") from e
    return unquote_to_bytes(payload)


def to_data_url(image: Image.Image) -> str:
    buf = io.BytesIO()
    image.save(buf, format="PNG")
    return "data:image/png;base64," + base64.b64encode(buf.getvalue()).decode("ascii")


class SnapshotRenderer:
    def __init__(
        self,
        settings: Optional[ClientSettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.settings = settings or ClientSettings()
        self._transport = transport

    @property
    def size(self) -> tuple[int, int]:
        s = self.settings
        return round(s.CANVAS_WIDTH * s.RENDER_SCALE), round(s.CANVAS_HEIGHT * s.RENDER_SCALE)

    async def render(self, target: RenderTarget) -> Optional[str]:
        try:
            sources = await self._load_sources(target)
            return to_data_url(self.compose(target, sources))
        except (
            RenderError,
            httpx.HTTPError,
            OSError,
            ValueError,
            Image.DecompressionBombError,
            MemoryError,
        ) as e:
            logger.warning("renderer: snapshot failed: %s: %s", type(e).__name__, e)
            return None

    async def _load_sources(self, target: RenderTarget) -> Dict[str, Image.Image]:
        wanted: Dict[str, str] = {}
        if target.avatar_url:
            wanted["__avatar__"] = target.avatar_url
        for layer in target.layers:
            if not layer.visible:
                continue
            url = target.image_urls.get(layer.clothing_id)
            if not url:
                raise RenderError(f"no image for clothing_id={layer.clothing_id}")
            wanted[layer.clothing_id] = url

        out: Dict[str, Image.Image] = {}
        async with httpx.AsyncClient(
            timeout=self.settings.REQUEST_TIMEOUT_S, transport=self._transport, follow_redirects=True
        ) as http:
            for key, url in wanted.items():
                data = await self._read(http, url)
                img = Image.open(io.BytesIO(data))
                img.load()
                out[key] = img.convert("RGBA")
        return out

    @staticmethod
    async def _read(http: httpx.AsyncClient, url: str) -> bytes:
        if url.startswith("data:"):
            return decode_data_url(url)
        if url.startswith(("http://", "https://")):
            res = await http.get(url)
            res.raise_for_status()
            return res.content
        return Path(url).read_bytes()

    def compose(self, target: RenderTarget, sources: Dict[str, Image.Image]) -> Image.Image:
        width, height = self.size
        canvas = Image.new("RGBA", (width, height), BACKGROUND)
        avatar = sources.get("__avatar__")
        if avatar is not None:
            self._draw_avatar(canvas, avatar)
        else:
            self._draw_placeholder(canvas)
        for layer in target.layers:
            if layer.visible:
                self._draw_layer(canvas, layer, sources[layer.clothing_id])
        return canvas

    @staticmethod
    def _draw_avatar(canvas: Image.Image, avatar: Image.Image) -> None:
        # contain, bottom-aligned
        ratio = min(canvas.width / avatar.width, canvas.height / avatar.height)
        size = (max(1, round(avatar.width * ratio)), max(1, round(avatar.height * ratio)))
        img = avatar.resize(size, Image.Resampling.LANCZOS)
        canvas.paste(img, ((canvas.width - size[0]) // 2, canvas.height - size[1]), img)

    @staticmethod
    def _draw_placeholder(canvas: Image.Image) -> None:
        draw = ImageDraw.Draw(canvas)
        w, h = canvas.size
        head = w * 0.1
        draw.ellipse((w / 2 - head, h * 0.08, w / 2 + head, h * 0.08 + head * 2), fill=PLACEHOLDER)
        draw.rounded_rectangle(
            (w * 0.3, h * 0.08 + head * 2.2, w * 0.7, h * 0.95), radius=round(w * 0.08), fill=PLACEHOLDER
        )

    def _draw_layer(self, canvas: Image.Image, layer: FittingLayer, source: Image.Image) -> None:
        s = self.settings
        base_w = canvas.width * s.LAYER_BASE_WIDTH_RATIO
        w = base_w * layer.scale
        h = w * source.height / source.width
        if w < 1 or h < 1:
            return
        if w * h > canvas.width * canvas.height * MAX_LAYER_AREA:
            raise RenderError(f"layer too large clothing_id={layer.clothing_id} scale={layer.scale}")
        img = source.resize((round(w), round(h)), Image.Resampling.LANCZOS)
        if layer.rotation:
            # PIL rotates counter-clockwise
            img = img.rotate(-layer.rotation, resample=Image.Resampling.BICUBIC, expand=True)
        cx = canvas.width / 2 + layer.x * s.RENDER_SCALE
        cy = canvas.height / 2 + layer.y * s.RENDER_SCALE
        canvas.paste(img, (round(cx - img.width / 2), round(cy - img.height / 2)), img)
