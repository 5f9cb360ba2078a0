"""
Auto-compress plugin: the two entry points a host wires its events to.

    plugin = AutoCompressPlugin(vault, codec, notifier, store)
    plugin.load()
    host.on_create(plugin.on_file_created)
    panel = SettingsPanel(plugin, notifier)  # calls plugin.on_settings_changed
"""

import logging
from typing import Optional

from .eligibility import Decision, check_size, should_process
from .guard import ProcessingGuard
from .orchestrator import CompressionOrchestrator
from .plugin_api import (
    Codec,
    CompressionJob,
    FileHandle,
    Notifier,
    Vault,
    VaultError,
)
from .settings import CompressionSettings, SettingsStore

logger = logging.getLogger(__name__)


class AutoCompressPlugin:
    def __init__(
        self,
        vault: Vault,
        codec: Codec,
        notifier: Notifier,
        store: Optional[SettingsStore] = None,
        settings: Optional[CompressionSettings] = None,
    ):
        self.vault = vault
        self.notifier = notifier
        self.store = store
        self.guard = ProcessingGuard()
        self.orchestrator = CompressionOrchestrator(vault, codec, self.guard, notifier)
        self._settings = settings or CompressionSettings()

    @property
    def settings(self) -> CompressionSettings:
        return self._settings

    def load(self) -> CompressionSettings:
        """Load persisted settings over the defaults."""
        if self.store is not None:
            self._settings = self.store.load()
        logger.info(
            f"Compressing png/jpg/jpeg files over {self._settings.convert_size} bytes "
            f"(quality={self._settings.quality})"
        )
        if self._settings.ignored_paths:
            logger.info(f"Ignoring paths matching: {self._settings.ignored_paths}")
        return self._settings

    def on_settings_changed(self, new_settings: CompressionSettings) -> None:
        """
        Persist and adopt a new configuration.

        Raises SettingsError if invalid, OSError if it cannot be saved. In
        both cases the current settings stay in effect.
        """
        new_settings.validate()
        if self.store is not None:
            self.store.save(new_settings)
        self._settings = new_settings
        logger.debug(f"Settings changed: {new_settings}")

    def on_file_created(self, handle: FileHandle) -> Decision:
        """Handle a creation event; returns the filter's decision."""
        settings = self._settings
        claimed_before = self.guard.is_held(handle.path)
        try:
            decision = should_process(
                handle.path,
                handle.extension,
                self.guard,
                settings.ignored_paths,
                self.notifier,
            )
            if not decision.eligible:
                return decision

            try:
                data = self.vault.read_binary(handle)
            except (VaultError, OSError) as e:
                logger.warning(f"Could not read {handle.path}: {e}")
                data = b""

            decision = check_size(
                handle.path, data, settings.convert_size, self.guard, self.notifier
            )
        except Exception:
            # Never leave a claim behind for an event that did not reach the codec
            if not claimed_before:
                self.guard.release(handle.path)
            raise
        if not decision.eligible:
            return decision

        logger.info(f"Compressing {handle.path} ({len(data)} bytes)")
        job = CompressionJob(handle.path, handle.extension, data)
        self.orchestrator.compress(job, settings)
        return decision
