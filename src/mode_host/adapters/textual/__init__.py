"""Textual adapter; import ``.app`` for the runnable demo."""

from .controller import IDLE_STATUS, TextualModeAdapter, TextualUIHooks

__all__ = ["TextualModeAdapter", "TextualUIHooks", "IDLE_STATUS"]
