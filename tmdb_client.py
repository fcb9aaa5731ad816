# tmdb_client.py
from typing import Dict, List, Optional
from urllib.parse import quote

import requests

import config
from errors import EmptyResult, NetworkFailure
from logger_conf import get_logger

logger = get_logger(__name__)


def _headers() -> Dict[str, str]:
    headers = {"accept": "application/json"}
    if config.TMDB_API_KEY:
        headers["Authorization"] = f"Bearer {config.TMDB_API_KEY}"
    return headers


def build_movies_endpoint(query: str = "") -> str:
    """
    Monta a URL da consulta:
      - termo não vazio -> /search/movie?query=<termo codificado>
      - termo vazio     -> /discover/movie ordenado por popularidade
    """
    if query:
        return f"{config.TMDB_BASE_URL}/search/movie?query={quote(query, safe='')}"
    return f"{config.TMDB_BASE_URL}/discover/movie?sort_by=popularity.desc"


def fetch_movies(query: str = "") -> List[dict]:
    """
    Faz exatamente uma requisição ao TMDB e retorna a lista `results`.
    Levanta NetworkFailure (erro de rede / status != 2xx) ou EmptyResult
    (API sem filmes para o termo).
    """
    url = build_movies_endpoint(query)
    logger.debug(f"GET {url}")

    try:
        resp = requests.get(url, headers=_headers(), timeout=config.REQUEST_TIMEOUT)
    except requests.exceptions.Timeout as e:
        raise NetworkFailure("Timeout ao buscar filmes") from e
    except requests.exceptions.RequestException as e:
        raise NetworkFailure(f"Erro de rede ao buscar filmes: {e}") from e

    if not resp.ok:
        raise NetworkFailure(
            f"Failed to fetch movies: status {resp.status_code} — {resp.text[:200]}",
            status_code=resp.status_code,
        )

    try:
        data = resp.json()
    except ValueError as e:
        raise NetworkFailure("Resposta da API não é JSON válido") from e

    if not isinstance(data, dict):
        raise NetworkFailure(f"Resposta inesperada da API: {type(data).__name__}")

    if data.get("Response") == "False":
        raise EmptyResult(data.get("Error") or "No movies found.")

    results = data.get("results") or []
    if not results:
        raise EmptyResult("No movies found.")
    return results


def poster_url(poster_path: Optional[str], size: str = "w500") -> Optional[str]:
    if not poster_path:
        return None
    return f"{config.TMDB_IMAGE_BASE}/{size}{poster_path}"
