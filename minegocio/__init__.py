"""MiNegocio backend: email verification, debug and data cleanup endpoints."""

__version__ = "0.1.0"
