"""Configuration module — frozen dataclasses loaded from YAML, environment
variables and CLI flags, in that order of precedence (last wins)."""

import argparse
import logging
import os
from dataclasses import dataclass

import yaml

logger = logging.getLogger(__name__)

SINKS = ("logging", "http", "tcp", "udp")
CONFIG_PATH_ENV = "COMPONENT_LOGGER_CONFIG"
DEFAULT_SCHEMA_PATH = os.path.join(os.path.dirname(__file__), "schemas", "component_log.json")


def _parse_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("true", "1", "yes")


def _parse_markers(value) -> tuple:
    if isinstance(value, (list, tuple)):
        return tuple(str(item) for item in value if item)
    return tuple(part.strip() for part in str(value).split(",") if part.strip())


def _load_yaml_section(config_path: str | None, section: str) -> dict:
    """Return one top-level mapping from a YAML file, or {} if unavailable."""
    if not config_path:
        return {}
    try:
        with open(config_path, "r") as f:
            data = yaml.safe_load(f)
    except FileNotFoundError:
        logger.warning("Config file %s not found, using defaults", config_path)
        return {}
    except yaml.YAMLError:
        logger.warning("Invalid YAML in %s, using defaults", config_path)
        return {}

    if not isinstance(data, dict) or not isinstance(data.get(section), dict):
        return {}
    return data[section]


@dataclass(frozen=True)
class ClientConfig:
    sink: str = "logging"
    endpoint_url: str = "http://localhost:5000/api/component-logs"
    sink_host: str = "localhost"
    sink_port: int = 9000
    sink_timeout: float = 5.0
    compress: bool = False
    module_marker: str = "/modules/"
    component_marker: str = "/components/"
    internal_markers: tuple = ("/component_logger/",)
    diagnostic_level: str = "INFO"


def load_client_config(argv=None) -> ClientConfig:
    """Build ClientConfig from defaults, the YAML ``client:`` section,
    environment variables, then CLI flags.

    Pass argv for testability; when None, argparse reads sys.argv.
    """
    parser = argparse.ArgumentParser(description="Component Logger demo client")
    parser.add_argument("--config", type=str, default=None)
    parser.add_argument("--sink", type=str, choices=SINKS, default=None)
    parser.add_argument("--endpoint-url", type=str, default=None)
    parser.add_argument("--sink-host", type=str, default=None)
    parser.add_argument("--sink-port", type=int, default=None)
    parser.add_argument("--compress", action="store_true", default=False)
    args = parser.parse_args(argv)

    values = dict(_load_yaml_section(args.config or os.environ.get(CONFIG_PATH_ENV), "client"))

    env_map = {
        "LOG_SINK": "sink",
        "LOG_ENDPOINT_URL": "endpoint_url",
        "LOG_SINK_HOST": "sink_host",
        "LOG_SINK_PORT": "sink_port",
        "LOG_SINK_TIMEOUT": "sink_timeout",
        "LOG_COMPRESS": "compress",
        "MODULE_MARKER": "module_marker",
        "COMPONENT_MARKER": "component_marker",
        "INTERNAL_MARKERS": "internal_markers",
        "DIAGNOSTIC_LEVEL": "diagnostic_level",
    }
    for env_name, key in env_map.items():
        if env_name in os.environ:
            values[key] = os.environ[env_name]

    # CLI flags override env vars
    if args.sink is not None:
        values["sink"] = args.sink
    if args.endpoint_url is not None:
        values["endpoint_url"] = args.endpoint_url
    if args.sink_host is not None:
        values["sink_host"] = args.sink_host
    if args.sink_port is not None:
        values["sink_port"] = args.sink_port
    if args.compress:
        values["compress"] = True

    sink = str(values.get("sink", ClientConfig.sink)).lower()
    if sink not in SINKS:
        logger.warning("Unknown sink %r, falling back to %r", sink, ClientConfig.sink)
        sink = ClientConfig.sink

    return ClientConfig(
        sink=sink,
        endpoint_url=str(values.get("endpoint_url", ClientConfig.endpoint_url)),
        sink_host=str(values.get("sink_host", ClientConfig.sink_host)),
        sink_port=int(values.get("sink_port", ClientConfig.sink_port)),
        sink_timeout=float(values.get("sink_timeout", ClientConfig.sink_timeout)),
        compress=_parse_bool(values.get("compress", ClientConfig.compress)),
        module_marker=str(values.get("module_marker", ClientConfig.module_marker)),
        component_marker=str(values.get("component_marker", ClientConfig.component_marker)),
        internal_markers=_parse_markers(
            values.get("internal_markers", ClientConfig.internal_markers)
        ),
        diagnostic_level=str(values.get("diagnostic_level", ClientConfig.diagnostic_level)).upper(),
    )


@dataclass(frozen=True)
class ServerConfig:
    host: str = "0.0.0.0"
    port: int = 5000
    max_entries: int = 1000
    schema_path: str = DEFAULT_SCHEMA_PATH
    debug: bool = False


def load_server_config(config_path: str | None = None) -> ServerConfig:
    """Build ServerConfig from defaults, the YAML ``server:`` section, then
    environment variables."""
    values = dict(_load_yaml_section(config_path or os.environ.get(CONFIG_PATH_ENV), "server"))

    env_map = {
        "SERVER_HOST": "host",
        "SERVER_PORT": "port",
        "MAX_ENTRIES": "max_entries",
        "SCHEMA_PATH": "schema_path",
        "SERVER_DEBUG": "debug",
    }
    for env_name, key in env_map.items():
        if env_name in os.environ:
            values[key] = os.environ[env_name]

    return ServerConfig(
        host=str(values.get("host", ServerConfig.host)),
        port=int(values.get("port", ServerConfig.port)),
        max_entries=int(values.get("max_entries", ServerConfig.max_entries)),
        schema_path=str(values.get("schema_path", ServerConfig.schema_path)),
        debug=_parse_bool(values.get("debug", ServerConfig.debug)),
    )
