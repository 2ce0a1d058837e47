"""Asynchronous URL loading on top of ``requests``.

Every request runs on a worker thread and resolves a ``Future`` with exactly
one ``LoadResult``: the response, a transport error, or a cancellation.
Aborting a request resolves its future immediately; a response that arrives
afterwards is discarded.
"""

import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Optional

import requests

from xml_node_tree.shared import LoaderConfig, get_logger

from .query import FORM_CONTENT_TYPE


@dataclass
class LoadResult:
    """Terminal outcome of a load.

    ``success`` reports whether a response was received at all; the HTTP
    status code is reported as is and not interpreted.
    """

    success: bool
    cancelled: bool = False
    status_code: Optional[int] = None
    response_data: Optional[bytes] = None
    response_string: Optional[str] = None
    error: Optional[str] = None
    url: Optional[str] = None

    @classmethod
    def cancelled_result(cls, url: Optional[str] = None) -> "LoadResult":
        return cls(success=False, cancelled=True, url=url)


class URLLoader:
    """Load data from a URL without blocking the caller.

    Attributes:
        url: The URL loaded by ``get`` and ``post``
        config: Loader configuration
        last_result: Result of the most recent completed request

    Examples:
        >>> with URLLoader("https://example.org/feed.xml") as loader:
        ...     result = loader.get().result()
        >>> result.status_code
        200
    """

    def __init__(
        self,
        url: str,
        config: Optional[LoaderConfig] = None,
        session: Optional[requests.Session] = None,
        executor: Optional[ThreadPoolExecutor] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        self.url = url
        self.config = config or LoaderConfig()
        self.last_result: Optional[LoadResult] = None
        self.logger = get_logger(__name__, correlation_id, "url_loader")

        self._owns_session = session is None
        self._session = session or requests.Session()
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="url-loader"
        )
        self._lock = threading.Lock()
        self._cancel_event = threading.Event()
        self._future: Optional["Future[LoadResult]"] = None

    def get(self) -> "Future[LoadResult]":
        """Start loading ``url`` with a GET request."""
        return self.perform_request(requests.Request("GET", self.url))

    def post(self, body: str) -> "Future[LoadResult]":
        """POST a form-encoded ``body`` to ``url``."""
        return self.perform_request(
            requests.Request(
                "POST",
                self.url,
                data=body.encode("utf-8"),
                headers={"Content-Type": FORM_CONTENT_TYPE},
            )
        )

    def perform_request(self, request: requests.Request) -> "Future[LoadResult]":
        """Perform ``request`` on a worker thread.

        All loads start here.

        Raises:
            RuntimeError: If another request of this loader is still running
        """
        if self.config.user_agent and "User-Agent" not in request.headers:
            request.headers["User-Agent"] = self.config.user_agent
        prepared = self._session.prepare_request(request)

        future: "Future[LoadResult]" = Future()
        with self._lock:
            if self._future is not None and not self._future.done():
                raise RuntimeError("A request is already in progress")
            self._cancel_event = threading.Event()
            self._future = future
            cancel_event = self._cancel_event

        self.logger.info(
            "Request issued", extra={"method": prepared.method, "url": prepared.url}
        )
        self._executor.submit(self._run, prepared, cancel_event, future)
        return future

    def abort(self) -> None:
        """Abort the running request, resolving it as cancelled."""
        with self._lock:
            future = self._future
            self._cancel_event.set()
        if future is not None and self._resolve(future, LoadResult.cancelled_result(self.url)):
            self.logger.info("Request aborted", extra={"url": self.url})

    def close(self) -> None:
        """Abort any running request and release owned resources."""
        self.abort()
        if self._owns_executor:
            self._executor.shutdown(wait=False)
        if self._owns_session:
            self._session.close()

    def __enter__(self) -> "URLLoader":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def _run(
        self,
        prepared: requests.PreparedRequest,
        cancel_event: threading.Event,
        future: "Future[LoadResult]",
    ) -> None:
        if cancel_event.is_set():
            return
        try:
            response = self._session.send(prepared, timeout=self.config.timeout_seconds)
        except requests.RequestException as e:
            result = LoadResult(success=False, error=str(e) or type(e).__name__, url=prepared.url)
        except Exception as e:
            with self._lock:
                if not future.done():
                    future.set_exception(e)
            raise
        else:
            result = self._result_from_response(response)

        if cancel_event.is_set():
            self.logger.debug("Discarding response of aborted request", extra={"url": prepared.url})
            return
        if self._resolve(future, result):
            self.logger.info(
                "Request completed",
                extra={
                    "url": prepared.url,
                    "success": result.success,
                    "status_code": result.status_code,
                },
            )

    def _result_from_response(self, response: requests.Response) -> LoadResult:
        data = response.content
        return LoadResult(
            success=True,
            status_code=response.status_code,
            response_data=data,
            response_string=None if self.config.expect_binary_data else response.text,
            url=response.url,
        )

    def _resolve(self, future: "Future[LoadResult]", result: LoadResult) -> bool:
        with self._lock:
            if future.done():
                return False
            future.set_result(result)
            self.last_result = result
        return True
