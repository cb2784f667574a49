"""Core configuration, wiring and shared helpers."""
