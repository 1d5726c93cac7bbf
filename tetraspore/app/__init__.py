"""Application layer: configuration and the command-line interface."""
