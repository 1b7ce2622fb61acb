import importlib.util
from concurrent.futures import Executor, Future

import pytest

from component_logger.buffer import LogBuffer
from component_logger.config import ServerConfig
from component_logger.server import create_app
from component_logger.sinks import CallbackSink


class ImmediateExecutor(Executor):
    """Runs submitted work inline so flush results are visible at once."""

    def submit(self, fn, /, *args, **kwargs):
        future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except BaseException as exc:
            future.set_exception(exc)
        return future


@pytest.fixture
def immediate_executor():
    return ImmediateExecutor()


@pytest.fixture
def sent_batches():
    """Batches received by the recording sink, one list per flush."""
    return []


@pytest.fixture
def recording_sink(sent_batches):
    return CallbackSink(sent_batches.append)


@pytest.fixture
def buffer(recording_sink, immediate_executor):
    return LogBuffer(recording_sink, transaction_id="txn-test", executor=immediate_executor)


@pytest.fixture
def load_frontend_module(tmp_path):
    """Write *source* to tmp_path/<kind>/<name>/<name>.py and import it.

    Lets a test call into code whose file path carries a real
    /modules/ or /components/ segment.
    """
    def _load(kind: str, name: str, source: str):
        directory = tmp_path / kind / name
        directory.mkdir(parents=True)
        path = directory / f"{name}.py"
        path.write_text(source)
        spec = importlib.util.spec_from_file_location(f"frontend_{kind}_{name}", path)
        module = importlib.util.module_from_spec(spec)
        spec.loader.exec_module(module)
        return module

    return _load


@pytest.fixture
def app():
    application = create_app(ServerConfig(max_entries=50))
    application.config["TESTING"] = True
    return application


@pytest.fixture
def client(app):
    return app.test_client()
