"""Cal AI: food photo nutrition estimates from a vision language model."""

__version__ = "0.1.0"
