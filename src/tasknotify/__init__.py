"""tasknotify: chimes and desktop toasts when a background task halts."""

__version__ = "0.1.0"
