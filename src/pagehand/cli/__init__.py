"""pagehand command-line interface."""
