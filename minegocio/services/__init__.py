"""
High-level use cases for the MiNegocio API.

Each service module orchestrates repositories/adapters to implement business
rules (verify an email, resend a verification link, clean tenant data, etc.).

Routers (FastAPI endpoints) call these services instead of touching the
database or the mailer directly.
"""
