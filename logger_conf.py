# logger_conf.py
"""
Logger do app. Todos os módulos pedem `get_logger(__name__)` e recebem um filho
de "movie_search"; os handlers ficam só no logger base, configurados uma vez.
"""
import logging

import config

APP_LOGGER = "movie_search"
CONSOLE_FORMAT = "%(levelname)s - %(message)s"
FILE_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(threadName)s %(message)s"

# bibliotecas que falam demais em DEBUG
QUIET_LOGGERS = ("urllib3", "watchdog")


def _level(name: str) -> int:
    return getattr(logging, str(name).upper(), logging.INFO)


def _configure(base: logging.Logger) -> None:
    base.setLevel(logging.DEBUG)

    # console: nível vem do .env (LOG_LEVEL)
    ch = logging.StreamHandler()
    ch.setLevel(_level(config.LOG_LEVEL))
    ch.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    base.addHandler(ch)

    # arquivo: tudo, inclusive as threads do debounce / trending
    try:
        fh = logging.FileHandler(config.LOG_FILE, encoding="utf-8")
    except OSError as e:
        base.warning(f"Não foi possível abrir {config.LOG_FILE} para log: {e}")
    else:
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(logging.Formatter(FILE_FORMAT))
        base.addHandler(fh)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str = None) -> logging.Logger:
    base = logging.getLogger(APP_LOGGER)
    if not base.handlers:
        _configure(base)
    if not name or name == APP_LOGGER:
        return base
    return base.getChild(name)
