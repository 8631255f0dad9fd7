"""Academic Copilot: chat client for a remote study assistant."""

__version__ = "0.1.0"
