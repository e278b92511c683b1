"""HTTP boundary for treecalc (FastAPI)."""

from ._app import create_app
from ._errors import status_code_for

__all__ = ["create_app", "status_code_for"]
