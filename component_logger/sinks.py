"""Backend sinks — deliver one flushed batch of entry dicts per call.

A sink either returns normally (delivered) or raises SinkError. Retries are
the backend's business; a sink makes exactly one attempt.
"""

import json
import logging
import socket

import requests

from component_logger.serializer import format_ndjson, serialize_batch

logger = logging.getLogger(__name__)


class SinkError(Exception):
    """Delivery of a batch to the backend failed."""


class LogSink:
    """Base class; subclasses implement ``send``."""

    def send(self, entries: list[dict]) -> None:
        raise NotImplementedError

    def close(self):
        """Release any held resources."""


class CallbackSink(LogSink):
    """Hands each batch to a callable. Exceptions become SinkError."""

    def __init__(self, callback):
        self._callback = callback

    def send(self, entries: list[dict]) -> None:
        try:
            self._callback(entries)
        except Exception as exc:
            raise SinkError(f"callback failed: {exc}") from exc


class LoggingSink(LogSink):
    """Writes every entry to a local logger, one JSON line each."""

    _LEVELS = {
        "Error": logging.ERROR,
        "Warning": logging.WARNING,
        "Event": logging.INFO,
        "Debug": logging.DEBUG,
    }

    def __init__(self, target: logging.Logger | None = None):
        self._target = target or logging.getLogger("component_logger.entries")

    def send(self, entries: list[dict]) -> None:
        for entry in entries:
            level = self._LEVELS.get(entry.get("category"), logging.INFO)
            self._target.log(level, "%s", json.dumps(entry, sort_keys=True))


class HttpSink(LogSink):
    """POSTs ``{"component_logs": [...]}`` to a receiver endpoint."""

    def __init__(self, url: str, timeout: float = 5.0, session=None):
        self._url = url
        self._timeout = timeout
        self._http = session or requests

    def send(self, entries: list[dict]) -> None:
        try:
            response = self._http.post(
                self._url,
                json={"component_logs": entries},
                timeout=self._timeout,
            )
            response.raise_for_status()
        except requests.exceptions.Timeout as exc:
            raise SinkError(f"timed out posting to {self._url}") from exc
        except requests.exceptions.RequestException as exc:
            raise SinkError(f"failed posting to {self._url}: {exc}") from exc

        logger.debug("Posted %d entries to %s (HTTP %d)", len(entries), self._url, response.status_code)

    def close(self):
        if self._http is not requests:
            self._http.close()


class TcpSink(LogSink):
    """Opens one connection per batch and writes the entries as NDJSON."""

    def __init__(self, host: str, port: int, timeout: float = 5.0):
        self._host = host
        self._port = port
        self._timeout = timeout

    def send(self, entries: list[dict]) -> None:
        payload = b"".join(format_ndjson(entry) for entry in entries)
        try:
            with socket.create_connection((self._host, self._port), timeout=self._timeout) as sock:
                sock.sendall(payload)
        except OSError as exc:
            raise SinkError(f"TCP send to {self._host}:{self._port} failed: {exc}") from exc


class UdpSink(LogSink):
    """Sends the whole batch as a single datagram."""

    def __init__(self, host: str, port: int, compress: bool = True):
        self._host = host
        self._port = port
        self._compress = compress
        self._sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)

    def send(self, entries: list[dict]) -> None:
        data = serialize_batch(entries, compress=self._compress)
        try:
            self._sock.sendto(data, (self._host, self._port))
        except OSError as exc:
            raise SinkError(f"UDP send to {self._host}:{self._port} failed: {exc}") from exc

    def close(self):
        self._sock.close()


def create_sink(config) -> LogSink:
    """Build the sink named by ``config.sink``."""
    if config.sink == "http":
        return HttpSink(config.endpoint_url, timeout=config.sink_timeout)
    if config.sink == "tcp":
        return TcpSink(config.sink_host, config.sink_port, timeout=config.sink_timeout)
    if config.sink == "udp":
        return UdpSink(config.sink_host, config.sink_port, compress=config.compress)
    if config.sink == "logging":
        return LoggingSink()
    raise ValueError(f"Unknown sink {config.sink!r}")
