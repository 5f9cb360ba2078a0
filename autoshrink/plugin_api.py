"""
Host boundary for autoshrink - the interfaces the compression engine talks to.

The engine never touches the file system, the image codec or the user
interface directly. A host supplies a `Vault` (binary read/write of vault
files), a `Codec` (asynchronous image re-encoding) and a `Notifier`
(short user-visible messages). This module defines those seams together
with the value types that cross them and the error hierarchy.
"""

from abc import ABC, abstractmethod
from pathlib import PurePosixPath
from typing import Any, Callable, Dict, NamedTuple, Optional
import logging

from . import config

logger = logging.getLogger(__name__)

# Logger used by LoggingNotifier; kept separate so hosts can route notices
notice_logger = logging.getLogger(config.NOTICE_LOGGER)

SuccessCallback = Callable[[bytes], None]
ErrorCallback = Callable[[BaseException], None]


class FileHandle(NamedTuple):
    """A file as delivered by a host creation event."""

    path: str  # Vault-relative POSIX path, e.g. "assets/photo.png"
    name: str  # Base name, e.g. "photo.png"
    extension: str  # Lower-cased, without the dot, e.g. "png"

    @classmethod
    def from_path(cls, path: str) -> "FileHandle":
        p = PurePosixPath(path)
        return cls(path=p.as_posix(), name=p.name, extension=p.suffix.lstrip(".").lower())


class CodecOptions(NamedTuple):
    """Parameters handed to the codec for one re-encode."""

    mime_type: str  # "image/png" or "image/jpeg"
    quality: Optional[float] = None  # 0-1; None lets the codec choose
    convert_size: int = 0  # PNGs above this many bytes are re-encoded as JPEG
    max_width: float = float("inf")
    max_height: float = float("inf")
    width: Optional[int] = None
    height: Optional[int] = None


class CompressionJob:
    """One eligible file on its way through the codec.

    Created when the filter passes a file and dropped once the success or
    failure notice has been emitted.
    """

    def __init__(
        self,
        path: str,
        fmt: str,
        data: bytes,
        options: Optional[CodecOptions] = None,
    ):
        self.path = path
        self.format = fmt
        self.data = data
        self.original_size = len(data)
        self.options = options
        self.new_size: Optional[int] = None
        self.error: Optional[BaseException] = None

    @property
    def done(self) -> bool:
        return self.new_size is not None or self.error is not None

    @property
    def succeeded(self) -> bool:
        return self.new_size is not None and self.error is None

    def to_dict(self) -> Dict[str, Any]:
        """Convert the job to a dictionary for logging."""
        return {
            "path": self.path,
            "format": self.format,
            "original_size": self.original_size,
            "new_size": self.new_size,
            "error": str(self.error) if self.error else None,
        }

    def __repr__(self) -> str:
        return f"<CompressionJob: {self.path} ({self.format}, {self.original_size} bytes)>"


class Vault(ABC):
    """Binary access to the files of the observed vault."""

    # True when write_binary produces a new creation event for the same path.
    # The orchestrator keeps the guard held until that echo is consumed.
    echoes_writes: bool = True

    @abstractmethod
    def read_binary(self, handle: FileHandle) -> bytes:
        """
        Return the full content of a vault file.

        Raises:
            VaultError: The file could not be read
        """
        pass

    @abstractmethod
    def write_binary(self, path: str, data: bytes) -> None:
        """
        Overwrite the content at a vault-relative path.

        Raises:
            VaultError: The file could not be written
        """
        pass


class Codec(ABC):
    """Asynchronous image re-encoding capability."""

    @abstractmethod
    def compress(
        self,
        data: bytes,
        options: CodecOptions,
        success: SuccessCallback,
        error: ErrorCallback,
    ) -> None:
        """
        Start re-encoding `data` and return immediately.

        Exactly one of `success` (with the new bytes) or `error` (with the
        exception) is called once the work is done.
        """
        pass


class Notifier(ABC):
    """Short transient messages shown to the end user."""

    @abstractmethod
    def notice(self, message: str, level: str = "info") -> None:
        pass


class LoggingNotifier(Notifier):
    """Notifier for headless hosts: notices become log records."""

    _LEVELS = {
        "debug": logging.DEBUG,
        "info": logging.INFO,
        "warning": logging.WARNING,
        "error": logging.ERROR,
    }

    def notice(self, message: str, level: str = "info") -> None:
        notice_logger.log(self._LEVELS.get(level, logging.INFO), message)


class AutoshrinkError(Exception):
    """Base class for errors raised by autoshrink."""


class SettingsError(AutoshrinkError):
    """A configuration value was rejected."""

    def __init__(self, field: str, value: Any, message: str):
        self.field = field
        self.value = value
        self.message = message
        super().__init__(message)

    def __str__(self) -> str:
        return f"Invalid {self.field} {self.value!r}: {self.message}"


class CodecError(AutoshrinkError):
    """The codec could not re-encode an image."""


class VaultError(AutoshrinkError):
    """A vault read or write failed."""

    def __init__(self, message: str, path: str = ""):
        self.message = message
        self.path = path
        super().__init__(message)

    def __str__(self) -> str:
        if self.path:
            return f"({self.path}) {self.message}"
        return self.message
