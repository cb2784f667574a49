"""Infrastructure adapters: persistence and payment providers."""
