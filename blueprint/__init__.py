"""Blueprint -- configuration-driven Flutter project generator."""

__version__ = "0.1.0"
