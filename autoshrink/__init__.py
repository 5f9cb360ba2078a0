"""autoshrink - compress oversized images as soon as they land in a vault."""

__version__ = "0.1.0"
