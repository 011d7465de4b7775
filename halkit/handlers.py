"""
Delegating handlers that wrap the transport call.

Handlers form a chain: each one receives the outgoing request and an
``inner_handler`` to forward it to. A handler may rewrite the request, rewrite
the response, or answer on its own without forwarding.
"""

import logging
import time
from collections.abc import Awaitable, Callable, Iterable, Mapping, Sequence

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    retry_if_result,
    stop_after_attempt,
    wait_exponential,
)

logger = logging.getLogger(__name__)

SendCallable = Callable[[httpx.Request], Awaitable[httpx.Response]]


class DelegatingHandler:
    """Base handler; forwards the request unchanged."""

    def __init__(self) -> None:
        self._inner_handler: SendCallable | None = None

    @property
    def inner_handler(self) -> SendCallable:
        if self._inner_handler is None:
            raise RuntimeError(f"{type(self).__name__} is not attached to a pipeline.")
        return self._inner_handler

    def attach(self, inner_handler: SendCallable) -> None:
        if self._inner_handler is not None:
            raise RuntimeError(f"{type(self).__name__} is already attached to a pipeline.")
        self._inner_handler = inner_handler

    async def send(self, request: httpx.Request) -> httpx.Response:
        return await self.inner_handler(request)


def build_pipeline(handlers: Sequence[DelegatingHandler], transport: SendCallable) -> SendCallable:
    """Link handlers so that ``handlers[0]`` sees each request first."""
    send = transport
    for handler in reversed(handlers):
        handler.attach(send)
        send = handler.send
    return send


class HeadersHandler(DelegatingHandler):
    """Adds static headers (e.g. Authorization) the request does not already carry."""

    def __init__(self, headers: Mapping[str, str | Iterable[str]]) -> None:
        super().__init__()
        self._headers: list[tuple[str, list[str]]] = [
            (name, [values] if isinstance(values, str) else list(values))
            for name, values in headers.items()
        ]

    async def send(self, request: httpx.Request) -> httpx.Response:
        for name, values in self._headers:
            if name not in request.headers:
                request.headers[name] = ", ".join(values)
        return await self.inner_handler(request)


class LoggingHandler(DelegatingHandler):
    """Logs each exchange with its elapsed time."""

    def __init__(self, log: logging.Logger | None = None) -> None:
        super().__init__()
        self._logger = log or logger

    async def send(self, request: httpx.Request) -> httpx.Response:
        started = time.perf_counter()
        extra = {"method": request.method, "url": str(request.url)}
        try:
            response = await self.inner_handler(request)
        except httpx.RequestError as exc:
            self._logger.warning(
                "HAL request failed at transport level: %s",
                exc,
                extra={**extra, "elapsed_ms": _elapsed_ms(started)},
            )
            raise

        fields = {**extra, "status_code": response.status_code, "elapsed_ms": _elapsed_ms(started)}
        if response.is_error:
            await response.aread()
            snippet = response.text.strip()
            if len(snippet) > 512:
                snippet = f"{snippet[:512]}..."
            self._logger.warning(
                "HAL API responded with error", extra={**fields, "content": snippet}
            )
        else:
            self._logger.info("HAL request completed", extra=fields)
        return response


class RetryHandler(DelegatingHandler):
    """Retries transport failures and selected status codes with exponential backoff."""

    def __init__(
        self,
        max_attempts: int = 3,
        backoff: float = 0.5,
        retry_statuses: Iterable[int] = (502, 503, 504),
    ) -> None:
        super().__init__()
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1.")
        if backoff < 0:
            raise ValueError("backoff must not be negative.")
        self._max_attempts = max_attempts
        self._backoff = backoff
        self._retry_statuses = frozenset(retry_statuses)

    def _is_retryable_response(self, response: httpx.Response) -> bool:
        return response.status_code in self._retry_statuses

    async def send(self, request: httpx.Request) -> httpx.Response:
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self._max_attempts),
            wait=wait_exponential(multiplier=self._backoff),
            retry=retry_if_exception_type(httpx.TransportError)
            | retry_if_result(self._is_retryable_response),
            before_sleep=_log_retry,
            # Out of attempts: hand back the last response, or re-raise the last error.
            retry_error_callback=lambda state: state.outcome.result(),
            reraise=True,
        )
        return await retrying(self.inner_handler, request)


def _log_retry(retry_state: RetryCallState) -> None:
    outcome = retry_state.outcome
    request = retry_state.args[0]
    extra = {
        "attempt": retry_state.attempt_number,
        "url": str(request.url),
        "delay": retry_state.next_action.sleep if retry_state.next_action else 0.0,
    }
    if outcome.failed:
        logger.debug("Retrying after transport error: %s", outcome.exception(), extra=extra)
    else:
        logger.debug(
            "Retrying after retryable status",
            extra={**extra, "status_code": outcome.result().status_code},
        )


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)
