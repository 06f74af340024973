"""Address service: address records behind a FastAPI API with a Redis read-through cache."""

__version__ = "0.1.0"
