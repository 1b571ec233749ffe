"""Single-active-mode plugin host for editor ambient UI."""

__all__ = [
    "adapters",
    "commands",
    "errors",
    "host",
    "modes",
    "runtime",
    "selection",
    "session",
    "storage",
]

__version__ = "0.1.0"
