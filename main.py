# main.py
import sys
from typing import List

import config
from logger_conf import get_logger
from search_coordinator import SearchCoordinator, SearchState
from trending_store import TrendingRecord, build_trending_store

logger = get_logger(__name__)

HELP = "Comandos: search <termo> / now <termo> / popular / trending / quit"


def pretty_print_results(results: List[dict], limit: int = 10) -> None:
    """Imprime os filmes de forma legível."""
    if not results:
        print("Nenhum resultado para mostrar.")
        return

    for i, item in enumerate(results[:limit], start=1):
        title = item.get("title") or item.get("name") or "Título não disponível"
        year = (item.get("release_date") or "")[:4] or "----"
        vote = item.get("vote_average")
        vote_str = f"{vote:.1f}" if isinstance(vote, (int, float)) else "-"
        lang = item.get("original_language") or "-"
        print(f"{i}) {title} ({year}) — Nota: {vote_str} — {lang} — ID: {item.get('id', 'N/A')}")


def pretty_print_trending(records: List[TrendingRecord]) -> None:
    if not records:
        print("No trending movies available.")
        return
    for i, record in enumerate(records, start=1):
        print(f"{i}) {record.search_term} — {record.count} buscas")


def print_state(state: SearchState) -> None:
    label = f'"{state.debounced_term}"' if state.debounced_term else "populares"
    print(f"\n--- Filmes ({label}) ---")
    if state.error_message:
        print(state.error_message)
    else:
        pretty_print_results(state.movies)


def input_loop(coordinator: SearchCoordinator) -> None:
    coordinator.load_trending()
    state = coordinator.snapshot()
    if state.trending_error:
        print(state.trending_error)
    else:
        print("Trending:")
        pretty_print_trending(state.trending)

    # resultados da busca debounced chegam pela thread do timer
    coordinator.add_listener(print_state)
    coordinator.fetch_movies("")
    print(HELP)

    while True:
        line = input("> ").strip()
        cmd, _, arg = line.partition(" ")
        cmd = cmd.lower()

        if cmd in ("quit", "sair", "exit"):
            print("Tchau! Até a próxima.")
            return

        if cmd in ("search", "buscar"):
            coordinator.set_search_term(arg.strip())
        elif cmd == "now":
            coordinator.search_now(arg.strip())
        elif cmd == "popular":
            coordinator.search_now("")
        elif cmd == "trending":
            pretty_print_trending(coordinator.load_trending())
        else:
            print(HELP)


def main() -> None:
    missing = config.missing_settings()
    if missing:
        logger.warning(f"Variáveis não definidas no ambiente: {', '.join(missing)}")

    coordinator = SearchCoordinator(build_trending_store())
    try:
        input_loop(coordinator)
    except (KeyboardInterrupt, EOFError):
        print("\nInterrompido pelo usuário. Até mais.")
    finally:
        coordinator.close()


if __name__ == "__main__":
    main()
    sys.exit(0)
