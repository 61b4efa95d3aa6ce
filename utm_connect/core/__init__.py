"""Core configuration, errors, logging and auth primitives."""
