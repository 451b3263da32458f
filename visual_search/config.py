"""
Configuration settings for Visual Search.

All API keys are OPTIONAL - search and clustering work without them.
Cluster label refinement requires an OpenAI token, either from OPENAI_API_KEY
or passed per request.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables from .env file
# Look for .env file in project root (parent of visual_search/)
_project_root = Path(__file__).parent.parent
_env_path = _project_root / ".env"
if _env_path.exists():
    load_dotenv(dotenv_path=_env_path)

# ===================
# API Keys (All Optional)
# ===================

# OpenAI API key - default token for label refinement
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")

# Semantic Scholar key raises the provider's rate limit
SEMANTIC_SCHOLAR_API_KEY = os.getenv("SEMANTIC_SCHOLAR_API_KEY")

# ===================
# Project Paths
# ===================

PROJECT_ROOT = _project_root
DATA_DIR = PROJECT_ROOT / "data"
ARTIFACTS_DIR = Path(os.getenv("VISUAL_SEARCH_ARTIFACTS", str(PROJECT_ROOT / "artifacts")))
SESSION_DIR = ARTIFACTS_DIR / "session"
OPTIONS_PATH = ARTIFACTS_DIR / "options.json"

# ===================
# Word Vectors
# ===================

# Bulk {token: vector} JSON table. A local path wins over the URL.
VECTOR_TABLE_PATH = os.getenv("VECTOR_TABLE_PATH", str(DATA_DIR / "w2v.json"))
VECTOR_TABLE_URL = os.getenv("VECTOR_TABLE_URL")

# ===================
# Network
# ===================

REQUEST_DELAY = float(os.getenv("REQUEST_DELAY", "0.2"))
REQUEST_TIMEOUT = float(os.getenv("REQUEST_TIMEOUT", "30"))

# ===================
# Default Settings
# ===================

DEFAULT_ARTICLES = 100
DEFAULT_CLUSTERS = 10
DEFAULT_EXCLUDE_EMPTY = True
DEFAULT_SOURCE = "semantic-scholar"
DEFAULT_KEYWORDS = 5

# Coalescing window for clustering parameter changes (seconds)
CLUSTER_DEBOUNCE = float(os.getenv("CLUSTER_DEBOUNCE", "0.5"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# ===================
# Feature Flags
# ===================

def has_openai() -> bool:
    """Check if an OpenAI API key is configured."""
    return bool(OPENAI_API_KEY)

def has_vector_table() -> bool:
    """Check if a word-vector table is reachable without extra arguments."""
    return bool(VECTOR_TABLE_URL) or Path(VECTOR_TABLE_PATH).exists()
