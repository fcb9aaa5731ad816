# search_coordinator.py
"""
Coordenador da busca: guarda o estado da UI, aplica debounce no termo digitado,
faz a consulta ao TMDB e dispara (sem esperar) o incremento do trending.
"""
import dataclasses
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, List, Optional

import config
from errors import EmptyResult, NetworkFailure
from logger_conf import get_logger
from tmdb_client import fetch_movies
from trending_store import TrendingRecord, TrendingStore

logger = get_logger(__name__)

NO_MOVIES_FOUND = "No movies found."
FETCH_ERROR = "Error fetching movies: Please try again later."
TRENDING_ERROR = "Could not load trending movies."


class Debouncer:
    """
    Chama `callback(valor)` só depois que `delay` segundos passam sem novo `trigger`.
    Cada trigger cancela o anterior; só o último valor é entregue.
    """

    def __init__(self, callback: Callable, delay: float = None):
        self.callback = callback
        self.delay = config.SEARCH_DEBOUNCE_SECONDS if delay is None else delay
        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._token = 0
        self._value = None

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._timer is not None

    def trigger(self, value) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._token += 1
            self._value = value
            self._timer = threading.Timer(self.delay, self._fire, args=(self._token,))
            self._timer.daemon = True
            self._timer.start()

    def _fire(self, token: int) -> None:
        with self._lock:
            # timer cancelado depois de já ter disparado
            if token != self._token or self._timer is None:
                return
            self._timer = None
            value = self._value
        self.callback(value)

    def flush(self) -> bool:
        """Executa agora a chamada pendente. Retorna False se não havia nada pendente."""
        with self._lock:
            if self._timer is None:
                return False
            self._timer.cancel()
            self._timer = None
            self._token += 1
            value = self._value
        self.callback(value)
        return True

    def cancel(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = None
            self._token += 1


@dataclass
class SearchState:
    search_term: str = ""
    debounced_term: Optional[str] = None
    movies: List[dict] = field(default_factory=list)
    error_message: str = ""
    is_loading: bool = False
    trending: List[TrendingRecord] = field(default_factory=list)
    trending_error: str = ""
    is_trending_loading: bool = False


class SearchCoordinator:
    def __init__(
        self,
        store: TrendingStore,
        fetcher: Callable[[str], List[dict]] = fetch_movies,
        debounce_seconds: float = None,
        trending_limit: int = None,
        executor: ThreadPoolExecutor = None,
    ):
        self.store = store
        self.trending_limit = config.TRENDING_LIMIT if trending_limit is None else trending_limit
        self._fetch = fetcher
        self._lock = threading.Lock()
        self._state = SearchState()
        self._generation = 0
        # executor externo (compartilhado) não é desligado no close()
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(max_workers=2, thread_name_prefix="trending")
        self._debouncer = Debouncer(self.fetch_movies, debounce_seconds)
        self._listeners: List[Callable[[SearchState], None]] = []
        self.last_increment: Optional[Future] = None
        self._closed = False

    # ---------- estado ----------
    def snapshot(self) -> SearchState:
        """Cópia do estado atual (segura para ler fora do lock)."""
        with self._lock:
            return dataclasses.replace(
                self._state,
                movies=list(self._state.movies),
                trending=list(self._state.trending),
            )

    def add_listener(self, listener: Callable[[SearchState], None]) -> None:
        """`listener(snapshot)` é chamado toda vez que um resultado de busca é aplicado."""
        self._listeners.append(listener)

    def _notify(self) -> None:
        state = self.snapshot()
        for listener in self._listeners:
            listener(state)

    # ---------- busca ----------
    def set_search_term(self, term: str) -> None:
        """Entrada do usuário: guarda o termo e agenda a busca (debounced)."""
        with self._lock:
            self._state.search_term = term
        self._debouncer.trigger(term)

    def search_now(self, term: str) -> bool:
        """Busca imediata, descartando qualquer busca agendada."""
        self._debouncer.cancel()
        with self._lock:
            self._state.search_term = term
        return self.fetch_movies(term)

    def flush(self) -> bool:
        return self._debouncer.flush()

    def fetch_movies(self, query: str = "") -> bool:
        """
        Faz uma consulta e aplica o resultado no estado.
        Retorna False se a resposta chegou atrasada (já existe busca mais nova) e foi descartada.
        """
        with self._lock:
            self._generation += 1
            generation = self._generation
            self._state.debounced_term = query
            self._state.is_loading = True
            self._state.error_message = ""

        movies: List[dict] = []
        error = ""
        try:
            movies = self._fetch(query)
        except EmptyResult as e:
            logger.info(f"Nenhum filme para {query!r}: {e}")
            error = NO_MOVIES_FOUND
        except NetworkFailure as e:
            logger.error(f"Error fetching movies: {e}")
            error = FETCH_ERROR
        except Exception:
            # qualquer outra falha também precisa liberar o loading
            logger.exception(f"Error fetching movies ({query!r})")
            error = FETCH_ERROR

        with self._lock:
            if generation != self._generation:
                logger.debug(f"Descartando resposta antiga para {query!r} (geração {generation})")
                return False
            self._state.movies = [] if error else list(movies)
            self._state.error_message = error
            self._state.is_loading = False

        if query and movies and not error:
            self._schedule_increment(query, movies[0])
        self._notify()
        return True

    # ---------- trending ----------
    def _schedule_increment(self, term: str, movie: dict) -> None:
        if self._closed:
            logger.debug(f"Coordenador fechado, ignorando incremento de {term!r}")
            return
        try:
            self.last_increment = self._executor.submit(self._increment_quietly, term, movie)
        except RuntimeError:
            # executor desligado entre o check e o submit
            logger.debug(f"Executor desligado, ignorando incremento de {term!r}")

    def _increment_quietly(self, term: str, movie: dict) -> Optional[TrendingRecord]:
        # falha no trending nunca afeta os resultados exibidos
        try:
            return self.store.increment_search_count(term, movie)
        except Exception:
            logger.exception(f"updateSearchCount error ({term!r})")
            return None

    def load_trending(self) -> List[TrendingRecord]:
        with self._lock:
            self._state.is_trending_loading = True
            self._state.trending_error = ""

        records: List[TrendingRecord] = []
        error = ""
        try:
            records = self.store.get_trending(self.trending_limit)
        except Exception:
            logger.exception("Error fetching trending movies")
            error = TRENDING_ERROR

        with self._lock:
            self._state.trending = list(records)
            self._state.trending_error = error
            self._state.is_trending_loading = False
        return records

    # ---------- ciclo de vida ----------
    def start(self) -> None:
        """Carga inicial: trending + filmes populares (termo vazio)."""
        self.load_trending()
        self.fetch_movies("")

    def close(self) -> None:
        """Cancela busca agendada e espera os incrementos em andamento."""
        self._closed = True
        self._debouncer.cancel()
        if self._owns_executor:
            self._executor.shutdown(wait=True)
