"""pagehand — affordance resolution and DOM action execution for browser assistants."""

__version__ = "0.3.0"
