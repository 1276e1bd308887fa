"""Directory-backed identity verification: credential checks and profile resolution."""

__version__ = "1.0.0"
