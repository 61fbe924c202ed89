"""Key sources for hashtable experiments."""

from .sources import (
    DEFAULT_DATE_STEP_MS,
    DEFAULT_WORD_LIST,
    SOURCES,
    SourceSpec,
    date_values,
    open_source,
    random_integers,
    resolve_source,
    word_list,
)

__all__ = [
    "DEFAULT_DATE_STEP_MS",
    "DEFAULT_WORD_LIST",
    "SOURCES",
    "SourceSpec",
    "date_values",
    "open_source",
    "random_integers",
    "resolve_source",
    "word_list",
]
