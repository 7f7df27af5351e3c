"""
FastAPI routers grouped by domain (verification, debug, data cleanup).

Each module exposes an APIRouter included by minegocio.app.create_app; the
services they call are stored on app.state so tests can build a fresh app.
"""
