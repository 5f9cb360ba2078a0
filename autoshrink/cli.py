import json
import logging
from pathlib import Path
from typing import Iterable, List, Optional

from . import config
from .codec import PillowCodec
from .dispatcher import EventDispatcher
from .plugin import AutoCompressPlugin
from .plugin_api import LoggingNotifier, Notifier
from .settings import SettingsPanel, SettingsStore
from .vault import FolderVault
from .watcher import start_watch

logger = logging.getLogger(__name__)


def default_settings_path(root: Path) -> Path:
    return Path(root) / config.DEFAULT_SETTINGS_DIRNAME / config.DEFAULT_SETTINGS_FILENAME


def apply_overrides(
    panel: SettingsPanel,
    assignments: Iterable[str],
    ignore: Optional[List[str]] = None,
) -> int:
    """Apply FIELD=VALUE assignments and an ignore list; returns how many were rejected."""
    rejected = 0
    for item in assignments:
        name, sep, text = item.partition("=")
        if not sep:
            raise ValueError(f"Expected FIELD=VALUE, got {item!r}")
        if not panel.set_field(name.strip(), text):
            rejected += 1
    if ignore is not None and not panel.set_ignored_paths("\n".join(ignore)):
        rejected += 1
    return rejected


def run_cli(args, notifier: Optional[Notifier] = None) -> int:
    # Require explicit root; callers should provide it
    if not getattr(args, 'root', None):
        raise ValueError('Root directory not provided to run_cli; pass --root or set AUTOSHRINK_ROOT environment variable')

    root = Path(args.root).resolve()
    settings_path = Path(args.settings) if getattr(args, 'settings', None) else default_settings_path(root)
    notifier = notifier or LoggingNotifier()

    dispatcher = EventDispatcher()
    codec = PillowCodec(deliver=dispatcher.call_soon)
    vault = FolderVault(root)
    plugin = AutoCompressPlugin(vault, codec, notifier, SettingsStore(settings_path))
    plugin.load()

    panel = SettingsPanel(plugin, notifier)
    rejected = apply_overrides(panel, getattr(args, 'set', None) or [], getattr(args, 'ignore', None))

    if getattr(args, 'show_settings', False):
        print(json.dumps(plugin.settings.to_dict(), indent=2))
        codec.shutdown()
        return 1 if rejected else 0

    if rejected:
        logger.warning(f"{rejected} setting override(s) rejected; watching with the remaining settings")

    start_watch(vault, plugin.on_file_created, dispatcher, stable_seconds=args.stable_seconds, codec=codec)

    stats = plugin.orchestrator.get_stats()
    logger.info(
        f"Compressed {stats['jobs_succeeded']}/{stats['jobs_started']} files, "
        f"{stats['jobs_failed']} failed"
    )
    return 1 if rejected else 0
