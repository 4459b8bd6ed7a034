"""Terminal front end: key input, rendering and the event loop."""

from .app import CourierCLI, main

__all__ = ["CourierCLI", "main"]
