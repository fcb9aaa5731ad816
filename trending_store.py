# trending_store.py
"""
Contador de buscas ("trending") guardado num document store.

Cada termo buscado vira um documento {searchTerm, count, movie_id, poster_url}.
Dois backends:
  - AppwriteTrendingStore: coleção remota via API REST do Appwrite
  - JsonTrendingStore: arquivo JSON local (dev / testes)

Erros do store nunca sobem para a UI: são logados e viram None / [].
"""
import hashlib
import json
import os
import threading
import uuid
from dataclasses import dataclass
from typing import Dict, List, Optional

import requests

import config
from errors import StoreFailure
from logger_conf import get_logger
from tmdb_client import poster_url

logger = get_logger(__name__)


@dataclass
class TrendingRecord:
    search_term: str
    count: int = 1
    movie_id: Optional[int] = None
    poster_url: Optional[str] = None
    doc_id: Optional[str] = None

    @classmethod
    def from_document(cls, doc: Dict) -> "TrendingRecord":
        return cls(
            search_term=doc.get("searchTerm", ""),
            count=_coerce_count(doc.get("count")),
            movie_id=doc.get("movie_id"),
            poster_url=doc.get("poster_url"),
            doc_id=doc.get("$id"),
        )

    def to_document(self) -> Dict:
        return {
            "searchTerm": self.search_term,
            "count": self.count,
            "movie_id": self.movie_id,
            "poster_url": self.poster_url,
        }


def _coerce_count(value) -> int:
    # contagem corrompida (string, null...) conta como zero
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return 0


def _only_documents(docs, source: str) -> List[Dict]:
    """Descarta entradas que não são objetos JSON (lixo no arquivo / resposta)."""
    valid = [d for d in docs if isinstance(d, dict)]
    if len(valid) != len(docs):
        logger.warning(f"Ignorando {len(docs) - len(valid)} documento(s) inválido(s) em {source}")
    return valid


def new_record(term: str, movie: Optional[Dict]) -> TrendingRecord:
    movie = movie or {}
    return TrendingRecord(
        search_term=term,
        count=1,
        movie_id=movie.get("id"),
        poster_url=poster_url(movie.get("poster_path")),
    )


class TrendingStore:
    """Interface comum. Subclasses implementam `_increment` e `_top`."""

    def increment_search_count(self, term: str, movie: Optional[Dict] = None) -> Optional[TrendingRecord]:
        """
        Incrementa o contador do termo ou cria o registro com count=1.
        Retorna o registro resultante, ou None se o termo for vazio ou o store falhar.
        """
        term = (term or "").strip()
        if not term:
            return None
        try:
            record = self._increment(term, movie)
        except StoreFailure as e:
            logger.error(f"updateSearchCount error ({term!r}): {e}")
            return None
        except Exception:
            logger.exception(f"updateSearchCount error ({term!r})")
            return None
        logger.debug(f"Trending: {record.search_term!r} -> {record.count}")
        return record

    def get_trending(self, limit: int = None) -> List[TrendingRecord]:
        """Top `limit` termos por contagem decrescente. Nunca levanta exceção."""
        if limit is None:
            limit = config.TRENDING_LIMIT
        if limit <= 0:
            return []
        try:
            return self._top(limit)[:limit]
        except StoreFailure as e:
            logger.error(f"Error getting trending movies: {e}")
            return []
        except Exception:
            logger.exception("Error getting trending movies")
            return []

    def _increment(self, term: str, movie: Optional[Dict]) -> TrendingRecord:
        raise NotImplementedError

    def _top(self, limit: int) -> List[TrendingRecord]:
        raise NotImplementedError


# ============================================================
#  Backend local (arquivo JSON)
# ============================================================ #

class JsonTrendingStore(TrendingStore):
    """Guarda os documentos numa lista JSON. Leitura+escrita sob lock (atômico no processo)."""

    def __init__(self, path: str = None):
        self.path = path or config.TRENDING_FILE
        self._lock = threading.Lock()

    def _read(self) -> List[Dict]:
        if not os.path.exists(self.path):
            return []
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f) or []
        except (OSError, ValueError) as e:
            # arquivo corrompido: renomeia e começa do zero na próxima escrita
            backup = self.path + ".corrupt"
            try:
                os.replace(self.path, backup)
            except OSError:
                logger.warning(f"Não foi possível renomear {self.path} para {backup}")
            raise StoreFailure(f"Erro lendo {self.path}. Arquivo renomeado para {backup}. Detalhe: {e}") from e
        if not isinstance(data, list):
            raise StoreFailure(f"{self.path} não contém uma lista JSON")
        return _only_documents(data, self.path)

    def _write(self, docs: List[Dict]) -> None:
        tmp = self.path + ".tmp"
        try:
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump(docs, f, ensure_ascii=False, indent=2)
            os.replace(tmp, self.path)
        except OSError as e:
            raise StoreFailure(f"Erro ao gravar {self.path}: {e}") from e

    def _increment(self, term: str, movie: Optional[Dict]) -> TrendingRecord:
        with self._lock:
            docs = self._read()
            for doc in docs:
                if doc.get("searchTerm") == term:
                    doc["count"] = _coerce_count(doc.get("count")) + 1
                    self._write(docs)
                    return TrendingRecord.from_document(doc)

            record = new_record(term, movie)
            doc = record.to_document()
            doc["$id"] = uuid.uuid4().hex
            docs.append(doc)
            self._write(docs)
            return TrendingRecord.from_document(doc)

    def _top(self, limit: int) -> List[TrendingRecord]:
        with self._lock:
            docs = self._read()
        # sort estável: empates ficam na ordem de inserção
        docs = sorted(docs, key=lambda d: _coerce_count(d.get("count")), reverse=True)
        return [TrendingRecord.from_document(d) for d in docs[:limit]]


# ============================================================
#  Backend remoto (Appwrite Databases REST)
# ============================================================ #

def document_id_for(term: str) -> str:
    """Id determinístico por termo (Appwrite aceita até 36 chars [a-zA-Z0-9._-])."""
    return "t" + hashlib.sha1(term.encode("utf-8")).hexdigest()[:35]


def query_equal(attribute: str, value) -> str:
    return json.dumps({"method": "equal", "attribute": attribute, "values": [value]})


def query_order_desc(attribute: str) -> str:
    return json.dumps({"method": "orderDesc", "attribute": attribute})


def query_limit(limit: int) -> str:
    return json.dumps({"method": "limit", "values": [limit]})


class AppwriteTrendingStore(TrendingStore):
    def __init__(
        self,
        endpoint: str,
        project_id: str,
        database_id: str,
        collection_id: str,
        api_key: Optional[str] = None,
        timeout: int = config.REQUEST_TIMEOUT,
    ):
        self.endpoint = endpoint.rstrip("/")
        self.project_id = project_id
        self.database_id = database_id
        self.collection_id = collection_id
        self.api_key = api_key
        self.timeout = timeout

    @property
    def documents_url(self) -> str:
        return (
            f"{self.endpoint}/databases/{self.database_id}"
            f"/collections/{self.collection_id}/documents"
        )

    def _headers(self) -> Dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "X-Appwrite-Project": self.project_id,
        }
        if self.api_key:
            headers["X-Appwrite-Key"] = self.api_key
        return headers

    def _request(self, method: str, url: str, **kwargs) -> Dict:
        try:
            resp = requests.request(method, url, headers=self._headers(), timeout=self.timeout, **kwargs)
        except requests.exceptions.RequestException as e:
            raise StoreFailure(f"Erro de rede no Appwrite ({method} {url}): {e}") from e

        if not resp.ok:
            raise StoreFailure(
                f"Appwrite {method} {url}: status {resp.status_code} — {resp.text[:200]}",
                status_code=resp.status_code,
            )
        try:
            data = resp.json()
        except ValueError as e:
            raise StoreFailure(f"Resposta inválida do Appwrite ({method} {url})") from e
        if not isinstance(data, dict):
            raise StoreFailure(f"Resposta inesperada do Appwrite ({method} {url}): {type(data).__name__}")
        return data

    def _list(self, queries: List[str]) -> List[Dict]:
        data = self._request("GET", self.documents_url, params={"queries[]": queries})
        docs = data.get("documents") or []
        if not isinstance(docs, list):
            raise StoreFailure(f"Campo documents inválido: {type(docs).__name__}")
        return _only_documents(docs, self.documents_url)

    def _bump(self, doc: Dict) -> TrendingRecord:
        if not doc.get("$id"):
            raise StoreFailure("Documento do Appwrite sem $id")
        new_count = _coerce_count(doc.get("count")) + 1
        updated = self._request(
            "PATCH",
            f"{self.documents_url}/{doc['$id']}",
            json={"data": {"count": new_count}},
        )
        # algumas versões não devolvem o documento inteiro no PATCH
        merged = dict(doc)
        merged.update(updated or {})
        merged["count"] = new_count
        return TrendingRecord.from_document(merged)

    def _increment(self, term: str, movie: Optional[Dict]) -> TrendingRecord:
        docs = self._list([query_equal("searchTerm", term)])
        if docs:
            return self._bump(docs[0])

        record = new_record(term, movie)
        doc_id = document_id_for(term)
        try:
            created = self._request(
                "POST",
                self.documents_url,
                json={"documentId": doc_id, "data": record.to_document()},
            )
        except StoreFailure as e:
            if e.status_code != 409:
                raise
            # outro cliente criou o mesmo termo entre o list e o create
            logger.debug(f"Documento {doc_id} já existe, incrementando")
            existing = self._request("GET", f"{self.documents_url}/{doc_id}")
            return self._bump(existing)

        record.doc_id = created.get("$id", doc_id)
        return record

    def _top(self, limit: int) -> List[TrendingRecord]:
        docs = self._list([query_order_desc("count"), query_limit(limit)])
        return [TrendingRecord.from_document(d) for d in docs]


def build_trending_store() -> TrendingStore:
    """Appwrite se estiver configurado no .env; senão o arquivo JSON local."""
    if config.appwrite_configured():
        return AppwriteTrendingStore(
            endpoint=config.APPWRITE_ENDPOINT,
            project_id=config.APPWRITE_PROJECT_ID,
            database_id=config.APPWRITE_DATABASE_ID,
            collection_id=config.APPWRITE_COLLECTION_ID,
            api_key=config.APPWRITE_API_KEY,
        )
    logger.warning(f"Appwrite não configurado — usando trending local em {config.TRENDING_FILE}")
    return JsonTrendingStore(config.TRENDING_FILE)
