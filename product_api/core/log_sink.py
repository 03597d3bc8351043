"""
Elasticsearch sink for structured log entries.

The sink is a structlog processor. On first use it makes sure the target
index exists, then forwards every entry at or above its minimum level to a
bounded queue. A daemon thread drains the queue into the index. Delivery is
best effort: a full queue drops the entry and a failed write is discarded.
"""

import logging
import queue
import threading
import time
from datetime import datetime, timezone
from enum import IntEnum
from typing import Any, Dict, Optional

from elasticsearch import Elasticsearch
from elasticsearch.exceptions import ApiError, TransportError

from product_api.core.exceptions import IndexInitError

# stdlib logger: records emitted here never pass back through the sink
logger = logging.getLogger(__name__)

_STOP = object()


class LogLevel(IntEnum):
    """Severities, most severe first."""
    PANIC = 0
    FATAL = 1
    ERROR = 2
    WARNING = 3
    INFO = 4
    DEBUG = 5
    TRACE = 6

    @classmethod
    def parse(cls, name: str) -> "LogLevel":
        name = name.upper()
        name = _ALIASES.get(name, name)
        try:
            return cls[name]
        except KeyError:
            raise ValueError(f"unknown log level: {name}")


_ALIASES = {
    "CRITICAL": "FATAL",
    "EXCEPTION": "ERROR",
    "WARN": "WARNING",
    "NOTSET": "TRACE",
}

# keys structlog adds that the document carries in dedicated fields
_RESERVED_KEYS = ("event", "level", "timestamp", "pathname", "func_name")


def format_timestamp(epoch_ns: int) -> str:
    """RFC 3339 UTC timestamp with nanoseconds, trailing zeros trimmed."""
    seconds, nanos = divmod(epoch_ns, 1_000_000_000)
    stamp = datetime.fromtimestamp(seconds, tz=timezone.utc).strftime("%Y-%m-%dT%H:%M:%S")
    fraction = f"{nanos:09d}".rstrip("0")
    if fraction:
        stamp = f"{stamp}.{fraction}"
    return f"{stamp}Z"


def _jsonable(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, dict):
        return {str(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return str(value)


class ElasticsearchLogSink:
    def __init__(
        self,
        client: Elasticsearch,
        index: str,
        host: str,
        min_level: str = "DEBUG",
        queue_size: int = 1000,
    ):
        self.client = client
        self.index = index
        self.host = host
        self.min_level = LogLevel.parse(min_level)
        self._queue: "queue.Queue[Any]" = queue.Queue(maxsize=queue_size)
        self._ready = False
        self._init_lock = threading.Lock()
        self._worker: Optional[threading.Thread] = None
        self._worker_lock = threading.Lock()
        self._closed = False
        self.dropped = 0

    @property
    def state(self) -> str:
        return "ready" if self._ready else "uninitialized"

    def ensure_index(self) -> None:
        """Create the index unless it already exists.

        Raises IndexInitError when the backend cannot be reached or does not
        acknowledge the creation.
        """
        if self._ready:
            return
        with self._init_lock:
            if self._ready:
                return
            try:
                if not self.client.indices.exists(index=self.index):
                    response = self.client.indices.create(index=self.index)
                    if not response["acknowledged"]:
                        raise IndexInitError(f"index {self.index} cannot be created")
            except (ApiError, TransportError) as e:
                raise IndexInitError(f"index {self.index} cannot be initialized: {e}") from e
            self._ready = True
            logger.debug("Log index ready: %s", self.index)

    def start(self) -> None:
        self.ensure_index()
        self._ensure_worker()

    def _ensure_worker(self) -> None:
        if self._closed or (self._worker is not None and self._worker.is_alive()):
            return
        with self._worker_lock:
            if not self._closed and (self._worker is None or not self._worker.is_alive()):
                self._worker = threading.Thread(target=self._drain, name="log-sink", daemon=True)
                self._worker.start()

    def close(self, timeout: float = 5.0) -> None:
        self._closed = True
        if self._worker is not None and self._worker.is_alive():
            try:
                self._queue.put(_STOP, timeout=timeout)
            except queue.Full:
                logger.debug("Log sink queue full on shutdown")
            self._worker.join(timeout)
        self._worker = None
        self.client.close()

    def accepts(self, method_name: str) -> bool:
        try:
            level = LogLevel.parse(method_name)
        except ValueError:
            return False
        return level <= self.min_level

    def build_document(self, event_dict: Dict[str, Any], epoch_ns: Optional[int] = None) -> Dict[str, Any]:
        level = event_dict.get("level", "info")
        data = {
            key: _jsonable(value)
            for key, value in event_dict.items()
            if key not in _RESERVED_KEYS
        }
        document = {
            "Host": self.host,
            "@timestamp": format_timestamp(epoch_ns if epoch_ns is not None else time.time_ns()),
            "Message": str(event_dict.get("event", "")),
            "Data": data,
            "Level": LogLevel.parse(level).name,
        }
        if event_dict.get("pathname"):
            document["File"] = event_dict["pathname"]
        if event_dict.get("func_name"):
            document["Func"] = event_dict["func_name"]
        return document

    def enqueue(self, document: Dict[str, Any]) -> bool:
        try:
            self._queue.put_nowait(document)
            return True
        except queue.Full:
            self.dropped += 1
            return False

    def __call__(self, _logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
        self.ensure_index()
        level = event_dict.get("level", method_name)
        if self.accepts(level) and not self._closed:
            self.enqueue(self.build_document(event_dict))
            self._ensure_worker()
        return event_dict

    def _drain(self) -> None:
        while True:
            document = self._queue.get()
            try:
                if document is _STOP:
                    return
                self._write(document)
            finally:
                self._queue.task_done()

    def _write(self, document: Dict[str, Any]) -> None:
        try:
            self.client.index(index=self.index, document=document)
        except Exception as e:
            logger.debug("Dropped log entry: %s", e)


def build_log_sink(settings) -> Optional[ElasticsearchLogSink]:
    if not settings.sink_enabled:
        return None
    client = Elasticsearch(settings.elasticsearch_url)
    return ElasticsearchLogSink(
        client,
        index=settings.log_index,
        host=settings.log_host,
        min_level=settings.sink_log_level,
        queue_size=settings.sink_queue_size,
    )
