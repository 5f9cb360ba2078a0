"""
Compression orchestrator - turns an eligible file into a codec call and
writes the result back in place.

The codec call is asynchronous. On success the new bytes are written to the
file's own path while its guard is still held, so the creation event that
the write produces is recognised as an echo. On failure the guard is
released and the original file is left alone.
"""

import logging
import math
from typing import Any, Dict

from .codec import human_readable_size
from .guard import ProcessingGuard
from .plugin_api import (
    Codec,
    CodecOptions,
    CompressionJob,
    Notifier,
    Vault,
    VaultError,
)
from .settings import CompressionSettings

logger = logging.getLogger(__name__)


def mime_type_for(extension: str) -> str:
    ext = extension.lower().lstrip(".")
    if ext == "jpg":
        ext = "jpeg"
    return f"image/{ext}"


def build_codec_options(fmt: str, settings: CompressionSettings) -> CodecOptions:
    """Derive codec options for a file of format `fmt` from the settings."""
    return CodecOptions(
        mime_type=mime_type_for(fmt),
        quality=settings.quality,
        convert_size=settings.convert_size,
        max_width=settings.max_width if settings.max_width is not None else math.inf,
        max_height=settings.max_height if settings.max_height is not None else math.inf,
        width=settings.width,
        height=settings.height,
    )


class CompressionOrchestrator:
    """
    Runs compression jobs against a vault and a codec.

    Jobs are expected one at a time on the host's event thread; the codec's
    continuations must be delivered on that same thread.
    """

    def __init__(
        self,
        vault: Vault,
        codec: Codec,
        guard: ProcessingGuard,
        notifier: Notifier,
    ):
        self.vault = vault
        self.codec = codec
        self.guard = guard
        self.notifier = notifier
        self._stats = {
            "jobs_started": 0,
            "jobs_succeeded": 0,
            "jobs_failed": 0,
            "bytes_saved": 0,
        }

    def compress(self, job: CompressionJob, settings: CompressionSettings) -> None:
        """Start compressing `job`; returns before the codec finishes."""
        job.options = build_codec_options(job.format, settings)
        self._stats["jobs_started"] += 1
        logger.debug(f"Compressing {job.path} with {job.options}")

        try:
            self.codec.compress(
                job.data,
                job.options,
                lambda result: self._on_success(job, result),
                lambda err: self._on_error(job, err),
            )
        except Exception as e:
            # A codec that fails before going asynchronous is still a job failure
            self._on_error(job, e)

    def _on_success(self, job: CompressionJob, result: bytes) -> None:
        new_size = len(result)
        try:
            # Guard stays held across the write so its echo is recognised
            self.vault.write_binary(job.path, result)
        except (VaultError, OSError) as e:
            self._on_error(job, e)
            return

        if not self.vault.echoes_writes:
            self.guard.release(job.path)

        job.new_size = new_size
        job.data = b""
        self._stats["jobs_succeeded"] += 1
        self._stats["bytes_saved"] += job.original_size - new_size
        logger.debug(f"Job finished: {job.to_dict()}")

        logger.info(
            f"Compressed {job.path}: {human_readable_size(job.original_size)} → "
            f"{human_readable_size(new_size)}"
        )
        self.notifier.notice(
            f"Compressed {job.path}: {job.original_size} bytes → {new_size} bytes"
        )

    def _on_error(self, job: CompressionJob, err: BaseException) -> None:
        self.guard.release(job.path)
        job.error = err
        job.data = b""
        self._stats["jobs_failed"] += 1
        logger.debug(f"Job finished: {job.to_dict()}")
        logger.error(f"Compression failed for {job.path}: {err}")
        self.notifier.notice(f"Compression failed for {job.path}: {err}", "error")

    def get_stats(self) -> Dict[str, Any]:
        return self._stats.copy()
