"""Backend for the Punto Kennedy outreach CRM.

Exposes the database :func:`get_session` helper for scripts; the HTTP app
lives in :mod:`kennedy.api.main`.
"""

from .db import get_session

__all__ = ["get_session"]
