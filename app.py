from concurrent.futures import ThreadPoolExecutor

import streamlit as st

from logger_conf import get_logger
from search_coordinator import SearchCoordinator, SearchState
from tmdb_client import poster_url
from trending_store import build_trending_store

logger = get_logger(__name__)

POLL_SECONDS = 0.5
GRID_COLUMNS = 4

# ---------------------- CONFIG BÁSICA ---------------------- #

st.set_page_config(
    page_title="Movie Search",
    page_icon="🎬",
    layout="wide",
)

st.markdown(
    """
    <style>
    .main-title {
        font-size: 2.3rem;
        font-weight: 700;
        text-align: center;
        margin-bottom: 1.2rem;
    }
    .text-gradient {
        background: linear-gradient(90deg, #d6c7ff, #ab8bff);
        -webkit-background-clip: text;
        -webkit-text-fill-color: transparent;
    }
    .section-header {
        font-size: 1.3rem;
        font-weight: 600;
        margin-top: 0.5rem;
        margin-bottom: 0.3rem;
    }
    .trending-rank {
        font-size: 3rem;
        font-weight: 800;
        color: #aaaaaa;
    }
    .movie-meta {
        font-size: 0.9rem;
        color: #cccccc;
    }
    </style>
    """,
    unsafe_allow_html=True,
)

# ---------------------- ESTADO ---------------------- #

@st.cache_resource
def get_store():
    # um store por processo (o lock do backend JSON precisa ser compartilhado)
    return build_trending_store()


@st.cache_resource
def get_executor():
    # incrementos de trending de todas as sessões dividem o mesmo pool
    return ThreadPoolExecutor(max_workers=4, thread_name_prefix="trending")


def get_coordinator() -> SearchCoordinator:
    if "coordinator" not in st.session_state:
        coordinator = SearchCoordinator(get_store(), executor=get_executor())
        coordinator.start()
        st.session_state["coordinator"] = coordinator
    return st.session_state["coordinator"]


# ---------------------- HELPERS ---------------------- #

def render_movie_card(movie: dict, container) -> None:
    title = movie.get("title") or movie.get("name") or "Untitled"
    vote = movie.get("vote_average")
    rating = f"{vote:.1f}" if isinstance(vote, (int, float)) and vote else "N/A"
    lang = movie.get("original_language") or "-"
    year = (movie.get("release_date") or "")[:4] or "N/A"

    url = poster_url(movie.get("poster_path"))
    if url:
        container.image(url)
    else:
        container.write("🎞️\n(no poster)")
    container.markdown(f"**{title}**")
    container.markdown(
        f'<div class="movie-meta">⭐ {rating} • {lang} • {year}</div>',
        unsafe_allow_html=True,
    )


def render_trending(state: SearchState) -> None:
    st.markdown('<div class="section-header">Trending Movies</div>', unsafe_allow_html=True)
    if state.is_trending_loading:
        st.caption("Loading trending movies...")
    elif state.trending_error:
        st.error(state.trending_error)
    elif not state.trending:
        st.info("No trending movies available.")
    else:
        cols = st.columns(len(state.trending))
        for index, (col, record) in enumerate(zip(cols, state.trending), start=1):
            col.markdown(f'<div class="trending-rank">{index}</div>', unsafe_allow_html=True)
            if record.poster_url:
                col.image(record.poster_url, caption=record.search_term, width=120)
            else:
                col.caption(record.search_term)


@st.fragment(run_every=POLL_SECONDS)
def render_all_movies() -> None:
    state = get_coordinator().snapshot()
    st.markdown('<div class="section-header">All Movies</div>', unsafe_allow_html=True)

    if state.is_loading:
        st.caption("⏳ Loading movies...")
        return
    if state.error_message:
        st.error(state.error_message)
        return

    cols = st.columns(GRID_COLUMNS)
    for i, movie in enumerate(state.movies):
        render_movie_card(movie, cols[i % GRID_COLUMNS])


# ---------------------- PÁGINA ---------------------- #

coordinator = get_coordinator()

st.markdown(
    '<div class="main-title">Find <span class="text-gradient">Movies</span> You\'ll Enjoy</div>',
    unsafe_allow_html=True,
)

term = st.text_input(
    "Search",
    placeholder="Search through thousands of movies",
    label_visibility="collapsed",
)
if term != coordinator.snapshot().search_term:
    coordinator.set_search_term(term)

render_trending(coordinator.snapshot())
if st.button("🔄 Refresh trending"):
    coordinator.load_trending()
    st.rerun()

render_all_movies()
