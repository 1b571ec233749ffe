"""Mode contract, the mode manager and built-in modes."""

from .base_mode import Mode, ModeDescriptor, ModeEnvironment, TransitionResult
from .mode_manager import ActivationState, ModeManager

__all__ = [
    "ActivationState",
    "Mode",
    "ModeDescriptor",
    "ModeEnvironment",
    "ModeManager",
    "TransitionResult",
]
