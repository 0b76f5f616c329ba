"""Request-scoped logging for the resource search service.

A search request fans out into a dozen concurrent places queries. Each
record carries the request's correlation_id and the pipeline step that
produced it (geocode, search, lookup, api), so one request's lines can be
pulled back together from an interleaved stream.
"""

import json
import logging
from contextvars import ContextVar
from datetime import datetime, timezone

SERVICE_NAME = "recoveryfinder"

# Set per request by the API middleware; copied into fan-out tasks
correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")

SEARCH_FIELDS = ("location", "category", "filter_tag", "duration_ms", "result_count")

STEP_BY_LOGGER = {
    "recoveryfinder.retrieval.geocode": "geocode",
    "recoveryfinder.retrieval.geoapify": "provider",
    "recoveryfinder.pipeline.search": "search",
    "recoveryfinder.pipeline.lookup": "lookup",
    "recoveryfinder.api.routes": "api",
    "recoveryfinder.api.main": "api",
}

TEXT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s [%(correlation_id)s] %(message)s"


def get_correlation_id() -> str:
    return correlation_id.get()


def step_for(record: logging.LogRecord) -> str | None:
    """Pipeline step of a record: an explicit extra wins, else derived from the logger."""
    return getattr(record, "step", None) or STEP_BY_LOGGER.get(record.name)


class RequestContextFilter(logging.Filter):
    """Stamp correlation_id and step onto every record passing the handler."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = correlation_id.get() or "-"
        record.step = step_for(record)
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per line, tagged with service, step and correlation_id."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "service": SERVICE_NAME,
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        cid = correlation_id.get()
        if cid:
            entry["correlation_id"] = cid

        step = step_for(record)
        if step:
            entry["step"] = step

        for key in SEARCH_FIELDS:
            val = getattr(record, key, None)
            if val is not None:
                entry[key] = val

        if record.exc_info and record.exc_info[1]:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


def setup_logging(json_format: bool = True, level: str = "INFO") -> None:
    """Install a single stderr handler on the root logger.

    json_format=False gives a one-line text format for local runs that still
    shows the correlation ID.
    """
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.handlers.clear()

    handler = logging.StreamHandler()
    handler.addFilter(RequestContextFilter())
    handler.setFormatter(JSONFormatter() if json_format else logging.Formatter(TEXT_FORMAT))
    root.addHandler(handler)

    for name in ("httpx", "httpcore", "uvicorn.access"):
        logging.getLogger(name).setLevel(logging.WARNING)
