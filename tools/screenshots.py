"""
Screenshot compression and archiving.

Screenshots go to the model as base64, so they must stay under the API's
image size limit. PNG is tried first, then progressively smaller JPEGs.
Every capture can also be archived on disk with a metadata record.
"""

import base64
import io
import json
import uuid
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

from loguru import logger
from PIL import Image

from core.constants import JPEG_COMPRESSION_STEPS, MAX_IMAGE_SIZE
from core.errors import ToolError

PNG_MAX_WIDTH = 1920


@dataclass
class CompressedScreenshot:
    """A screenshot encoded small enough to send to the model."""
    data: bytes
    format: str
    width: int
    height: int
    quality: Optional[int] = None

    @property
    def media_type(self) -> str:
        return "image/png" if self.format == "png" else "image/jpeg"

    @property
    def extension(self) -> str:
        return "png" if self.format == "png" else "jpg"

    @property
    def base64(self) -> str:
        return base64.b64encode(self.data).decode("utf-8")


def _fit_width(image: Image.Image, max_width: int) -> Image.Image:
    """Downscale to max_width keeping the aspect ratio; never upscale."""
    if image.width <= max_width:
        return image
    ratio = max_width / image.width
    return image.resize((max_width, int(image.height * ratio)), Image.Resampling.LANCZOS)


def compress_screenshot(image: Image.Image, max_size: int = MAX_IMAGE_SIZE) -> CompressedScreenshot:
    """
    Encode a screenshot under max_size bytes.

    Args:
        image: Captured screen image
        max_size: Byte limit for the encoded image

    Returns:
        CompressedScreenshot with the smallest-effort encoding that fits

    Raises:
        ToolError: if even the most aggressive JPEG step is too large
    """
    resized = _fit_width(image, PNG_MAX_WIDTH)
    buf = io.BytesIO()
    resized.save(buf, format="PNG", optimize=True, compress_level=9)
    data = buf.getvalue()
    if len(data) <= max_size:
        logger.debug("Screenshot compressed as PNG ({} bytes)", len(data))
        return CompressedScreenshot(data=data, format="png", width=resized.width, height=resized.height)

    rgb = image.convert("RGB")
    for step, quality, max_width in JPEG_COMPRESSION_STEPS:
        resized = _fit_width(rgb, max_width)
        buf = io.BytesIO()
        resized.save(buf, format="JPEG", quality=quality, optimize=True)
        data = buf.getvalue()
        if len(data) <= max_size:
            logger.debug("Screenshot compressed with {} JPEG step ({} bytes)", step, len(data))
            return CompressedScreenshot(
                data=data, format="jpeg", width=resized.width, height=resized.height, quality=quality
            )

    raise ToolError("Unable to compress image below 5MB limit")


class ScreenshotStore:
    """
    Archive screenshots under `<base_dir>/YYYY/MM/DD/`.

    Each capture is written twice (original PNG and the compressed copy sent
    to the model) and described in `<base_dir>/metadata.json`. Archiving is
    best effort: failures are logged and never reach the caller.
    """

    def __init__(self, base_dir: str):
        self.base_dir = Path(base_dir)
        self.metadata_file = self.base_dir / "metadata.json"

    def save(self, original: Image.Image, compressed: CompressedScreenshot, now: Optional[datetime] = None) -> Optional[Path]:
        """
        Write both images and append a metadata record.

        Returns:
            Path of the compressed file, or None if archiving failed
        """
        now = now or datetime.now()
        directory = self.base_dir / now.strftime("%Y") / now.strftime("%m") / now.strftime("%d")
        stem = f"screenshot-{now.strftime('%Y-%m-%dT%H-%M-%S-%f')}-{uuid.uuid4().hex[:8]}"

        try:
            directory.mkdir(parents=True, exist_ok=True)
            original.save(directory / f"{stem}-original.png", format="PNG")
            compressed_path = directory / f"{stem}-compressed.{compressed.extension}"
            compressed_path.write_bytes(compressed.data)

            self._append_metadata({
                "timestamp": now.isoformat(),
                "dimensions": {"width": compressed.width, "height": compressed.height},
                "format": compressed.format,
                "quality": compressed.quality,
                "size": len(compressed.data),
                "path": compressed_path.relative_to(self.base_dir).as_posix(),
            })
        except (OSError, ValueError) as e:
            logger.warning("Could not archive screenshot in {}: {}", self.base_dir, e)
            return None

        return compressed_path

    def load_metadata(self) -> list:
        if not self.metadata_file.exists():
            return []
        try:
            records = json.loads(self.metadata_file.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Screenshot metadata unreadable, starting over: {}", e)
            return []
        return records if isinstance(records, list) else []

    def _append_metadata(self, record: dict) -> None:
        records = self.load_metadata()
        records.append(record)
        self.metadata_file.write_text(json.dumps(records, indent=2), encoding="utf-8")
