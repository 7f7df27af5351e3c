"""
Core utilities shared across the MiNegocio API.

This package hosts configuration, logging setup, the SMTP mailer, password
hashing and rate limit helpers. Services and routers depend on these
primitives instead of reading env vars or talking to SMTP directly.
"""
