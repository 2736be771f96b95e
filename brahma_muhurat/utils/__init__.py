"""Configuration, observability and metrics helpers."""
