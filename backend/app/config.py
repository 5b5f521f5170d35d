import os
from pathlib import Path
from dotenv import load_dotenv

# Override=True so changes in backend/.env take effect on process reload.
#
# Tests set DISABLE_DOTENV=1 so a developer's backend/.env can't leak real keys
# or a real DATABASE_URL into the suite.
if os.getenv("DISABLE_DOTENV") != "1":
    load_dotenv(override=True)


def _env_flag(name: str, default: str = "0") -> bool:
    return (os.getenv(name, default) or default).strip() in {"1", "true", "True", "yes", "YES"}


_raw_database_url = (os.getenv("DATABASE_URL") or "").strip()
# Local SQLite file by default so the service boots without a hosted database.
_default_sqlite_path = (Path(__file__).resolve().parent.parent / "dev.db").as_posix()
DATABASE_URL = _raw_database_url or f"sqlite:///{_default_sqlite_path}"

LOG_LEVEL = (os.getenv("LOG_LEVEL", "INFO") or "INFO").strip().upper()

# -------------------- AI gateway (OpenAI-compatible chat completions) --------------------
AI_API_KEY = os.getenv("AI_API_KEY") or os.getenv("LOVABLE_API_KEY")
AI_BASE_URL = os.getenv("AI_BASE_URL", "https://ai.gateway.lovable.dev/v1")
AI_EMBEDDING_MODEL = os.getenv("AI_EMBEDDING_MODEL", "google/gemini-2.5-flash-lite")
AI_CAREER_MODEL = os.getenv("AI_CAREER_MODEL", "google/gemini-3-flash-preview")

# Keep defaults tight; the caller's request should not hang on a slow gateway.
AI_TIMEOUT_S = float(os.getenv("AI_TIMEOUT_S", "20") or "20")
AI_MAX_RETRIES = int(os.getenv("AI_MAX_RETRIES", "1") or "1")
AI_LOG_PAYLOADS = _env_flag("AI_LOG_PAYLOADS")

# -------------------- Profile matching --------------------
# Changing EMBEDDING_DIM invalidates every stored vector (rows are checked on read).
EMBEDDING_DIM = int(os.getenv("EMBEDDING_DIM", "64") or "64")
MATCH_TOP_K = int(os.getenv("MATCH_TOP_K", "10") or "10")
# Off: role filter runs after top-K truncation (can return fewer than K, or none).
MATCH_ROLE_PREFILTER = _env_flag("MATCH_ROLE_PREFILTER")

CAREER_COHORT_LIMIT = int(os.getenv("CAREER_COHORT_LIMIT", "20") or "20")
CAREER_EXPERIENCE_GAP = int(os.getenv("CAREER_EXPERIENCE_GAP", "2") or "2")
