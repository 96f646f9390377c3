import json
import logging
import os
import time
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Awaitable, Callable, Iterator, Mapping, Optional
from uuid import uuid4

from fastapi import FastAPI, Request, Response
from prometheus_fastapi_instrumentator import Instrumentator

SERVICE_NAME_DEFAULT = "investment-proposals"

correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")
request_id_var: ContextVar[str] = ContextVar("request_id", default="")
trace_id_var: ContextVar[str] = ContextVar("trace_id", default="")

access_logger = logging.getLogger("http.access")


@dataclass(frozen=True)
class RequestIds:
    correlation_id: str
    request_id: str
    trace_id: str

    @classmethod
    def from_headers(cls, headers: Mapping[str, str]) -> "RequestIds":
        """Reuse inbound ids where the caller sent them, otherwise mint new ones.

        The trace id is taken from a W3C ``traceparent`` header when it carries a
        32-character trace id.
        """
        trace_id = uuid4().hex
        traceparent_parts = headers.get("traceparent", "").split("-")
        if len(traceparent_parts) >= 4 and len(traceparent_parts[1]) == 32:
            trace_id = traceparent_parts[1]
        return cls(
            correlation_id=headers.get("X-Correlation-Id") or f"corr_{uuid4().hex[:12]}",
            request_id=headers.get("X-Request-Id") or f"req_{uuid4().hex[:12]}",
            trace_id=trace_id,
        )

    def response_headers(self) -> dict[str, str]:
        return {
            "X-Correlation-Id": self.correlation_id,
            "X-Request-Id": self.request_id,
            "X-Trace-Id": self.trace_id,
            "traceparent": f"00-{self.trace_id}-0000000000000001-01",
        }


@contextmanager
def bind_request_ids(ids: RequestIds) -> Iterator[RequestIds]:
    tokens = (
        correlation_id_var.set(ids.correlation_id),
        request_id_var.set(ids.request_id),
        trace_id_var.set(ids.trace_id),
    )
    try:
        yield ids
    finally:
        correlation_id_var.reset(tokens[0])
        request_id_var.reset(tokens[1])
        trace_id_var.reset(tokens[2])


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "service": os.getenv("SERVICE_NAME", SERVICE_NAME_DEFAULT),
            "environment": os.getenv("ENVIRONMENT", "local"),
            "logger": record.name,
            "message": record.getMessage(),
            "correlation_id": correlation_id_var.get() or None,
            "request_id": request_id_var.get() or None,
            "trace_id": trace_id_var.get() or None,
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        extra_fields = getattr(record, "extra_fields", None)
        if isinstance(extra_fields, dict):
            payload.update(extra_fields)
        return json.dumps({k: v for k, v in payload.items() if v is not None}, default=str)


def configure_logging(level: Optional[str] = None) -> None:
    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    root_logger = logging.getLogger()
    root_logger.handlers[:] = [handler]
    root_logger.setLevel((level or os.getenv("LOG_LEVEL", "INFO")).upper())


def _log_request(request: Request, status_code: int, started: float) -> None:
    # 5xx responses are also reported by the unhandled-exception handler
    access_logger.log(
        logging.WARNING if status_code >= 500 else logging.INFO,
        "request.completed",
        extra={
            "extra_fields": {
                "http_method": request.method,
                "endpoint": request.url.path,
                "status_code": status_code,
                "latency_ms": round((time.perf_counter() - started) * 1000, 2),
            }
        },
    )


def setup_observability(app: FastAPI) -> None:
    configure_logging()
    Instrumentator(excluded_handlers=["/metrics"]).instrument(app).expose(app)

    @app.middleware("http")
    async def _request_observability_middleware(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        started = time.perf_counter()
        ids = RequestIds.from_headers(request.headers)
        status_code = 500
        with bind_request_ids(ids):
            try:
                response = await call_next(request)
                status_code = response.status_code
            finally:
                _log_request(request, status_code, started)

        headers = ids.response_headers()
        headers["X-Correlation-Id"] = response.headers.get(
            "X-Correlation-Id", ids.correlation_id
        )
        response.headers.update(headers)
        return response
