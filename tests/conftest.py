"""
Shared pytest fixtures for autoshrink tests.

Provides in-memory stand-ins for the host (vault, notifier, codec) and
helpers for generating real image bytes with Pillow.
"""

import io
import os
import sys
from pathlib import Path

import pytest
from PIL import Image

# Add the project root to path for all tests
sys.path.insert(0, str(Path(__file__).parent.parent))

from autoshrink.plugin import AutoCompressPlugin
from autoshrink.plugin_api import Codec, Notifier, Vault, VaultError
from autoshrink.settings import CompressionSettings


class MemoryVault(Vault):
    """Vault holding files in a dict; records every read and write."""

    def __init__(self, files=None, echoes_writes=True):
        self.files = dict(files or {})
        self.echoes_writes = echoes_writes
        self.reads = []
        self.writes = []
        self.fail_writes = False
        self.on_write = None

    def read_binary(self, handle):
        self.reads.append(handle.path)
        if handle.path not in self.files:
            raise VaultError("No such file", handle.path)
        return self.files[handle.path]

    def write_binary(self, path, data):
        if self.fail_writes:
            raise VaultError("Disk full", path)
        if self.on_write:
            self.on_write(path, data)
        self.writes.append((path, data))
        self.files[path] = data


class RecordingNotifier(Notifier):
    def __init__(self):
        self.notices = []

    def notice(self, message, level="info"):
        self.notices.append((level, message))

    @property
    def messages(self):
        return [m for _, m in self.notices]

    def at(self, level):
        return [m for lvl, m in self.notices if lvl == level]


class ManualCodec(Codec):
    """Codec whose completions are triggered by the test."""

    def __init__(self):
        self.calls = []

    def compress(self, data, options, success, error):
        self.calls.append((data, options, success, error))

    @property
    def last_options(self):
        return self.calls[-1][1]

    def succeed(self, result, index=-1):
        self.calls[index][2](result)

    def fail(self, err, index=-1):
        self.calls[index][3](err)


def make_image_bytes(fmt="PNG", size=(64, 64), color=(200, 100, 50), noise=False, mode="RGB"):
    """Encode a Pillow image; noise=True makes it large and incompressible."""
    if noise:
        channels = len(mode)
        img = Image.frombytes(mode, size, os.urandom(size[0] * size[1] * channels))
    else:
        fill = color + (255,) if mode == "RGBA" and len(color) == 3 else color
        img = Image.new(mode, size, fill)
    buf = io.BytesIO()
    save_kwargs = {"quality": 95} if fmt == "JPEG" else {}
    img.save(buf, format=fmt, **save_kwargs)
    return buf.getvalue()


@pytest.fixture
def vault():
    return MemoryVault()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def codec():
    return ManualCodec()


@pytest.fixture
def plugin(vault, codec, notifier):
    return AutoCompressPlugin(vault, codec, notifier, settings=CompressionSettings())


# Pytest configuration
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "integration: mark test as integration test (slower)"
    )
