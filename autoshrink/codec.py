"""
Pillow-backed image codec.

Re-encodes PNG and JPEG bytes under size and quality constraints:

- EXIF orientation is applied before anything else
- the output is scaled down to fit max_width x max_height, keeping the
  aspect ratio; a fixed width and/or height replaces those bounds
- a PNG larger than convert_size is re-encoded as JPEG (transparency is
  flattened onto white)
- quality is a 0-1 fraction mapped onto Pillow's 1-100 JPEG scale; None
  keeps Pillow's default

Encoding runs on a worker thread. The success or error continuation is
handed to `deliver`, which hosts point at their event dispatcher so that
completions run on the event thread.
"""

import io
import logging
import math
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Optional, Tuple

from PIL import Image, ImageOps

from .plugin_api import Codec, CodecError, CodecOptions, ErrorCallback, SuccessCallback

logger = logging.getLogger(__name__)

# Suppress verbose PIL plugin loading messages
pil_logger = logging.getLogger("PIL")
pil_logger.setLevel(logging.WARNING)

Deliver = Callable[..., None]

PIL_FORMATS = {"image/png": "PNG", "image/jpeg": "JPEG"}


def human_readable_size(n: int) -> str:
    """
    Format file size in human readable format.

    Args:
        n: Size in bytes

    Returns:
        Human readable size string (e.g., "1.5MB", "256KB")
    """
    for unit in ["B", "KB", "MB", "GB", "TB"]:
        if n < 1024.0:
            return f"{n:.1f}{unit}"
        n /= 1024.0
    return f"{n:.1f}PB"


def _to_pixels(x: float) -> int:
    # round first so 99.99999999999999 becomes 100, not 99
    return max(1, math.floor(round(x, 6)))


def target_size(
    natural: Tuple[int, int], options: CodecOptions
) -> Tuple[int, int]:
    """Output dimensions for an image of `natural` size under `options`."""
    nat_w, nat_h = natural
    aspect = nat_w / nat_h

    if options.width or options.height:
        width, height = options.width, options.height
        if width and height:
            # Fit inside the requested box without distorting
            if height * aspect > width:
                height = width / aspect
            else:
                width = height * aspect
        elif width:
            height = width / aspect
        else:
            width = height * aspect
    else:
        width, height = nat_w, nat_h
        max_w = options.max_width or math.inf
        max_h = options.max_height or math.inf
        scale = min(1.0, max_w / nat_w, max_h / nat_h)
        if scale < 1.0:
            width, height = nat_w * scale, nat_h * scale

    return _to_pixels(width), _to_pixels(height)


def output_mime_type(data: bytes, options: CodecOptions) -> str:
    if options.mime_type == "image/png" and len(data) > options.convert_size:
        return "image/jpeg"
    return options.mime_type


def _flatten_for_jpeg(img: Image.Image) -> Image.Image:
    # Handle transparency by converting to RGB with white background
    if img.mode == "P":
        img = img.convert("RGBA")
    if img.mode in ("RGBA", "LA"):
        background = Image.new("RGB", img.size, (255, 255, 255))
        background.paste(img, mask=img.split()[-1])
        return background
    if img.mode not in ("RGB", "L", "CMYK"):
        return img.convert("RGB")
    return img


class PillowCodec(Codec):
    def __init__(
        self,
        deliver: Deliver,
        executor: Optional[ThreadPoolExecutor] = None,
    ):
        """
        Args:
            deliver: Called as deliver(callback, arg) from the worker thread;
                must hand the continuation to the thread that owns the
                plugin, e.g. `EventDispatcher.call_soon`
            executor: Pool the encoding runs on (one worker thread by default)
        """
        if not callable(deliver):
            raise TypeError("deliver must be callable")
        self._deliver = deliver
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="autoshrink-codec"
        )

    def compress(
        self,
        data: bytes,
        options: CodecOptions,
        success: SuccessCallback,
        error: ErrorCallback,
    ) -> None:
        future = self._executor.submit(self.encode, data, options)

        def _done(fut: Future) -> None:
            exc = fut.exception()
            if exc is not None:
                self._deliver(error, exc)
            else:
                self._deliver(success, fut.result())

        future.add_done_callback(_done)

    def encode(self, data: bytes, options: CodecOptions) -> bytes:
        """Re-encode synchronously. Raises CodecError on any decode/encode failure."""
        out_mime = output_mime_type(data, options)
        fmt = PIL_FORMATS.get(out_mime)
        if fmt is None:
            raise CodecError(f"Unsupported image type: {out_mime}")

        try:
            with Image.open(io.BytesIO(data)) as src:
                src.load()
                img = ImageOps.exif_transpose(src)
                size = target_size(img.size, options)
                if size != img.size:
                    img = img.resize(size, Image.LANCZOS)

                buf = io.BytesIO()
                if fmt == "JPEG":
                    img = _flatten_for_jpeg(img)
                    save_kwargs = {"optimize": True}
                    if options.quality is not None:
                        save_kwargs["quality"] = max(1, min(100, round(options.quality * 100)))
                    img.save(buf, format="JPEG", **save_kwargs)
                else:
                    img.save(buf, format="PNG", optimize=True)
        except (OSError, ValueError, Image.DecompressionBombError) as e:
            raise CodecError(f"Cannot re-encode image: {e}") from e

        result = buf.getvalue()
        logger.debug(
            f"Encoded {options.mime_type} {len(data)} bytes -> "
            f"{out_mime} {size[0]}x{size[1]} {len(result)} bytes"
        )
        return result

    def shutdown(self, wait: bool = True) -> None:
        if self._owns_executor:
            self._executor.shutdown(wait=wait)
