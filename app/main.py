"""Repo-root Uvicorn entrypoint.

    uvicorn app.main:app --reload

The FastAPI app lives in `backend/app/main.py`; this module only re-exports it
so the server can be started without changing into `backend/`.
"""

from backend.app.main import app  # noqa: F401
