import pytest

import config


class FakeResponse:
    def __init__(self, payload=None, status_code=200, text=None):
        self._payload = payload
        self.status_code = status_code
        self.text = text if text is not None else str(payload)

    @property
    def ok(self):
        return 200 <= self.status_code < 300

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


@pytest.fixture
def fake_response():
    return FakeResponse


@pytest.fixture(autouse=True)
def tmdb_settings(monkeypatch):
    monkeypatch.setattr(config, "TMDB_API_KEY", "test-token")
    monkeypatch.setattr(config, "TMDB_BASE_URL", "https://api.example.test/3")


MOVIES = [
    {"id": 603, "title": "The Matrix", "poster_path": "/matrix.jpg", "vote_average": 8.2,
     "original_language": "en", "release_date": "1999-03-30", "popularity": 80.1},
    {"id": 604, "title": "The Matrix Reloaded", "poster_path": None, "vote_average": 7.0,
     "original_language": "en", "release_date": "2003-05-15", "popularity": 40.2},
]


@pytest.fixture
def movies():
    return [dict(m) for m in MOVIES]
