"""URL loading: fetch documents over HTTP for parsing."""

from .query import query_from_request, query_from_string
from .url_loader import LoadResult, URLLoader

__all__ = [
    "LoadResult",
    "URLLoader",
    "query_from_request",
    "query_from_string",
]
