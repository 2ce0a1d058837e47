"""Query-string helpers for the URL loader."""

from typing import Any, Dict
from urllib.parse import parse_qsl, urlsplit

import requests

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


def query_from_string(query: str) -> Dict[str, str]:
    """Decode an ``a=1&b=2`` query string into a dictionary.

    A leading ``?`` is ignored, blank values are kept and, for repeated keys,
    the last value wins.

    Examples:
        >>> query_from_string("?q=xml&page=2")
        {'q': 'xml', 'page': '2'}
    """
    return dict(parse_qsl(query.lstrip("?"), keep_blank_values=True))


def query_from_request(request: Any) -> Dict[str, str]:
    """Collect the query parameters carried by a request.

    Accepts a ``requests.Request`` or ``requests.PreparedRequest``. Parameters
    come from the URL query; for POST requests with a form-encoded body the
    body parameters are merged in on top.
    """
    if isinstance(request, requests.Request):
        request = request.prepare()

    params = query_from_string(urlsplit(request.url or "").query)
    if (request.method or "").upper() != "POST" or not request.body:
        return params

    content_type = request.headers.get("Content-Type", FORM_CONTENT_TYPE)
    if not content_type.startswith(FORM_CONTENT_TYPE):
        return params

    body = request.body
    if isinstance(body, bytes):
        body = body.decode("utf-8", errors="replace")
    params.update(query_from_string(body))
    return params
