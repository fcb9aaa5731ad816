# config.py
import os
from typing import List

from dotenv import load_dotenv

# Carrega .env
load_dotenv()

# ---------- TMDB ----------
TMDB_API_KEY = os.getenv("TMDB_API_KEY")  # Bearer token (v4)
TMDB_BASE_URL = os.getenv("TMDB_BASE_URL", "https://api.themoviedb.org/3")
TMDB_IMAGE_BASE = "https://image.tmdb.org/t/p"
REQUEST_TIMEOUT = 10

# ---------- Appwrite (trending) ----------
APPWRITE_ENDPOINT = os.getenv("APPWRITE_ENDPOINT", "https://nyc.cloud.appwrite.io/v1")
APPWRITE_PROJECT_ID = os.getenv("APPWRITE_PROJECT_ID")
APPWRITE_API_KEY = os.getenv("APPWRITE_API_KEY")  # opcional (server key)
APPWRITE_DATABASE_ID = os.getenv("APPWRITE_DATABASE_ID")
APPWRITE_COLLECTION_ID = os.getenv("APPWRITE_COLLECTION_ID")

# fallback local quando o Appwrite não está configurado
TRENDING_FILE = os.getenv(
    "TRENDING_FILE", os.path.join(os.path.dirname(__file__), "trending.json")
)

# ---------- comportamento ----------
SEARCH_DEBOUNCE_SECONDS = float(os.getenv("SEARCH_DEBOUNCE_SECONDS", "0.5"))
TRENDING_LIMIT = int(os.getenv("TRENDING_LIMIT", "5"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE", os.path.join(os.path.dirname(__file__), "movie_search.log"))

_REQUIRED = ("TMDB_API_KEY",)
_APPWRITE = ("APPWRITE_PROJECT_ID", "APPWRITE_DATABASE_ID", "APPWRITE_COLLECTION_ID")


def missing_settings() -> List[str]:
    """Nomes das variáveis de ambiente que não foram definidas (só checa existência)."""
    return [name for name in _REQUIRED + _APPWRITE if not globals().get(name)]


def appwrite_configured() -> bool:
    return all(globals().get(name) for name in _APPWRITE)
