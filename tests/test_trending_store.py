import json

import pytest
import requests

import trending_store
from trending_store import (
    AppwriteTrendingStore,
    JsonTrendingStore,
    TrendingRecord,
    document_id_for,
)

# ============================================================
#  JSON local
# ============================================================ #


@pytest.fixture
def json_store(tmp_path):
    return JsonTrendingStore(str(tmp_path / "trending.json"))


def test_same_term_twice_counts_two(json_store, movies):
    json_store.increment_search_count("matrix", movies[0])
    record = json_store.increment_search_count("matrix", movies[1])

    assert record.count == 2
    trending = json_store.get_trending()
    assert len(trending) == 1
    # poster continua o do primeiro resultado que criou o registro
    assert trending[0].movie_id == 603
    assert trending[0].poster_url == "https://image.tmdb.org/t/p/w500/matrix.jpg"


def test_different_terms_are_independent(json_store, movies):
    json_store.increment_search_count("matrix", movies[0])
    json_store.increment_search_count("reloaded", movies[1])

    records = {r.search_term: r for r in json_store.get_trending()}
    assert set(records) == {"matrix", "reloaded"}
    assert records["matrix"].count == 1
    assert records["reloaded"].count == 1
    assert records["reloaded"].poster_url is None


def test_top_n_limit_and_order(json_store):
    for term, times in [("a", 1), ("b", 4), ("c", 2), ("d", 3), ("e", 5), ("f", 1)]:
        for _ in range(times):
            json_store.increment_search_count(term, {})

    top = json_store.get_trending(limit=3)
    assert [r.search_term for r in top] == ["e", "b", "d"]
    assert [r.count for r in top] == [5, 4, 3]
    assert len(json_store.get_trending()) == 5
    assert json_store.get_trending(limit=0) == []


def test_corrupt_file_yields_empty_list(tmp_path):
    path = tmp_path / "trending.json"
    path.write_text("{not json", encoding="utf-8")
    store = JsonTrendingStore(str(path))

    assert store.get_trending() == []
    assert (tmp_path / "trending.json.corrupt").exists()


def test_non_numeric_count_restarts_at_one(tmp_path):
    path = tmp_path / "trending.json"
    path.write_text(json.dumps([{"$id": "x", "searchTerm": "matrix", "count": "lots"}]), encoding="utf-8")
    store = JsonTrendingStore(str(path))

    assert store.increment_search_count("matrix", {}).count == 1


def test_blank_term_is_ignored(json_store):
    assert json_store.increment_search_count("   ", {"id": 1}) is None
    assert json_store.get_trending() == []


def test_write_failure_is_swallowed(json_store, monkeypatch):
    def fail(docs):
        raise trending_store.StoreFailure("disk full")

    monkeypatch.setattr(json_store, "_write", fail)
    assert json_store.increment_search_count("matrix", {}) is None


def test_record_document_roundtrip_names():
    record = TrendingRecord(search_term="matrix", count=3, movie_id=603, poster_url="p")
    assert record.to_document() == {"searchTerm": "matrix", "count": 3, "movie_id": 603, "poster_url": "p"}


# ============================================================
#  Appwrite (REST fake)
# ============================================================ #

BASE = "https://aw.test/v1/databases/db/collections/col/documents"


class FakeAppwrite:
    """Simula a coleção do Appwrite respondendo às chamadas de requests.request."""

    def __init__(self, fake_response):
        self.fake_response = fake_response
        self.docs = []
        self.calls = []
        self.fail_with = None

    def __call__(self, method, url, headers=None, timeout=None, params=None, json=None):
        self.calls.append((method, url, headers, params, json))
        if self.fail_with:
            raise self.fail_with
        if url == BASE and method == "GET":
            return self.fake_response({"total": 0, "documents": self._list(params["queries[]"])})
        if url == BASE and method == "POST":
            if any(d["$id"] == json["documentId"] for d in self.docs):
                return self.fake_response({"message": "Document already exists"}, status_code=409)
            doc = dict(json["data"], **{"$id": json["documentId"]})
            self.docs.append(doc)
            return self.fake_response(dict(doc))
        doc_id = url[len(BASE) + 1:]
        doc = next(d for d in self.docs if d["$id"] == doc_id)
        if method == "PATCH":
            doc.update(json["data"])
        return self.fake_response(dict(doc))

    def _list(self, queries):
        docs = list(self.docs)
        limit = None
        for raw in queries:
            q = json.loads(raw)
            if q["method"] == "equal":
                docs = [d for d in docs if d.get(q["attribute"]) in q["values"]]
            elif q["method"] == "orderDesc":
                docs = sorted(docs, key=lambda d: d[q["attribute"]], reverse=True)
            elif q["method"] == "limit":
                limit = q["values"][0]
        return [dict(d) for d in docs[:limit]]


@pytest.fixture
def appwrite(monkeypatch, fake_response):
    fake = FakeAppwrite(fake_response)
    monkeypatch.setattr(trending_store.requests, "request", fake)
    return fake


@pytest.fixture
def aw_store():
    return AppwriteTrendingStore("https://aw.test/v1/", "proj", "db", "col", api_key="secret")


def test_appwrite_create_then_update(appwrite, aw_store, movies):
    first = aw_store.increment_search_count("matrix", movies[0])
    second = aw_store.increment_search_count("matrix", movies[0])

    assert first.count == 1
    assert first.doc_id == document_id_for("matrix")
    assert second.count == 2
    assert len(appwrite.docs) == 1
    assert appwrite.docs[0]["poster_url"] == "https://image.tmdb.org/t/p/w500/matrix.jpg"

    method, url, headers, params, _ = appwrite.calls[0]
    assert (method, url) == ("GET", BASE)
    assert headers["X-Appwrite-Project"] == "proj"
    assert headers["X-Appwrite-Key"] == "secret"
    assert json.loads(params["queries[]"][0]) == {
        "method": "equal", "attribute": "searchTerm", "values": ["matrix"],
    }
    assert [c[0] for c in appwrite.calls] == ["GET", "POST", "GET", "PATCH"]


def test_appwrite_two_terms(appwrite, aw_store, movies):
    aw_store.increment_search_count("matrix", movies[0])
    aw_store.increment_search_count("reloaded", movies[1])

    assert sorted((d["searchTerm"], d["count"]) for d in appwrite.docs) == [("matrix", 1), ("reloaded", 1)]


def test_appwrite_create_conflict_falls_back_to_update(appwrite, aw_store, monkeypatch):
    # outro cliente criou o documento entre o list e o create
    appwrite.docs.append({"$id": document_id_for("matrix"), "searchTerm": "matrix", "count": 4})
    monkeypatch.setattr(aw_store, "_list", lambda queries: [])

    record = aw_store.increment_search_count("matrix", {})
    assert record.count == 5
    assert len(appwrite.docs) == 1


def test_appwrite_top_n(appwrite, aw_store):
    for term, times in [("a", 2), ("b", 3), ("c", 1)]:
        for _ in range(times):
            aw_store.increment_search_count(term, {})

    top = aw_store.get_trending(limit=2)
    assert [(r.search_term, r.count) for r in top] == [("b", 3), ("a", 2)]
    queries = [json.loads(q) for q in appwrite.calls[-1][3]["queries[]"]]
    assert {"method": "orderDesc", "attribute": "count"} in queries
    assert {"method": "limit", "values": [2]} in queries


def test_appwrite_error_on_top_n_returns_empty(appwrite, aw_store):
    appwrite.fail_with = requests.exceptions.ConnectionError("offline")
    assert aw_store.get_trending() == []


def test_appwrite_error_status_on_increment_is_swallowed(aw_store, monkeypatch, fake_response):
    monkeypatch.setattr(
        trending_store.requests, "request",
        lambda *a, **kw: fake_response({"message": "unauthorized"}, status_code=401),
    )
    assert aw_store.increment_search_count("matrix", {}) is None


def test_build_trending_store_picks_backend(monkeypatch, tmp_path):
    monkeypatch.setattr(trending_store.config, "TRENDING_FILE", str(tmp_path / "t.json"))
    for name in ("APPWRITE_PROJECT_ID", "APPWRITE_DATABASE_ID", "APPWRITE_COLLECTION_ID"):
        monkeypatch.setattr(trending_store.config, name, None)
    assert isinstance(trending_store.build_trending_store(), JsonTrendingStore)

    for name in ("APPWRITE_PROJECT_ID", "APPWRITE_DATABASE_ID", "APPWRITE_COLLECTION_ID"):
        monkeypatch.setattr(trending_store.config, name, "x")
    assert isinstance(trending_store.build_trending_store(), AppwriteTrendingStore)


def test_malformed_entries_in_file_are_skipped(tmp_path):
    path = tmp_path / "trending.json"
    path.write_text(json.dumps([{"searchTerm": "a", "count": 2}, "junk", None, 7]), encoding="utf-8")
    store = JsonTrendingStore(str(path))

    assert [(r.search_term, r.count) for r in store.get_trending()] == [("a", 2)]
    assert store.increment_search_count("a", {}).count == 3
    assert json.loads(path.read_text(encoding="utf-8")) == [{"searchTerm": "a", "count": 3}]


def test_unexpected_error_in_top_n_returns_empty(json_store, monkeypatch):
    def broken(limit):
        raise AttributeError("boom")

    monkeypatch.setattr(json_store, "_top", broken)
    assert json_store.get_trending() == []


@pytest.mark.parametrize("payload", [
    {"total": 0, "documents": None},
    {"total": 2, "documents": ["junk", 3]},
    None,
    [],
])
def test_appwrite_malformed_list_response(aw_store, monkeypatch, fake_response, payload):
    monkeypatch.setattr(trending_store.requests, "request", lambda *a, **kw: fake_response(payload))
    assert aw_store.get_trending() == []


def test_appwrite_skips_non_object_documents(aw_store, monkeypatch, fake_response):
    payload = {"total": 2, "documents": ["junk", {"$id": "x", "searchTerm": "matrix", "count": 3}]}
    monkeypatch.setattr(trending_store.requests, "request", lambda *a, **kw: fake_response(payload))

    assert [(r.search_term, r.count, r.doc_id) for r in aw_store.get_trending()] == [("matrix", 3, "x")]
