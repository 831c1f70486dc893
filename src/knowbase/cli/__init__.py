"""knowbase command-line interface."""
