"""Tests for component_logger/buffer.py — entry creation, ordering and flush."""

import re
import threading

import pytest

from component_logger.buffer import LogBuffer
from component_logger.config import ClientConfig
from component_logger.models import Category, OriginKind, SeverityLevel
from component_logger.sinks import CallbackSink, LoggingSink


def _failing_sink(exc=None):
    def _send(entries):
        raise exc or ConnectionError("backend down")
    return CallbackSink(_send)


# ── Entry creation ───────────────────────────────────────────────────

class TestEntryCreation:
    @pytest.mark.parametrize("method, category, level", [
        ("add_error", Category.ERROR, SeverityLevel.ERROR),
        ("add_warning", Category.WARNING, SeverityLevel.WARNING),
        ("add_debug", Category.DEBUG, SeverityLevel.DEBUG),
        ("add_info", Category.EVENT, SeverityLevel.INFO),
    ])
    def test_convenience_appends_one_entry(self, buffer, method, category, level):
        builder = getattr(buffer, method)()
        assert len(buffer) == 1
        assert buffer.pending[0] is builder
        assert builder.entry.category is category
        assert builder.entry.level is level

    def test_new_entry_default_category(self, buffer):
        assert buffer.new_entry().entry.category is Category.ERROR

    def test_entries_kept_in_call_order(self, buffer):
        buffer.add_debug().set_summary("1")
        buffer.add_error().set_summary("2")
        buffer.add_info().set_summary("3")
        assert [b.entry.summary for b in buffer.pending] == ["1", "2", "3"]

    def test_transaction_id_threaded_into_entries(self, buffer):
        assert buffer.add_info().entry.transaction_id == "txn-test"

    def test_generated_transaction_id(self, recording_sink, immediate_executor):
        first = LogBuffer(recording_sink, executor=immediate_executor)
        second = LogBuffer(recording_sink, executor=immediate_executor)
        assert re.fullmatch(r"[0-9a-f]{32}", first.transaction_id)
        assert first.transaction_id != second.transaction_id

    def test_record_exception(self, buffer):
        builder = buffer.record_exception({
            "message": "boom",
            "stack": "at .../modules/mod/mod.js:1:1 run (...)",
            "name": "TypeError",
        })
        entry = builder.entry
        assert len(buffer) == 1
        assert entry.category is Category.ERROR
        assert entry.error.message == "boom"
        assert entry.error.type_name == "TypeError"
        assert entry.provenance.origin_kind is OriginKind.FRONTEND_MODULE
        assert entry.provenance.origin_name == "mod"
        assert entry.provenance.origin_function == "run"

    def test_provenance_skips_buffer_frames(self, buffer, load_frontend_module):
        module = load_frontend_module(
            "modules", "cart",
            "def checkout(buffer):\n"
            "    return buffer.add_warning()\n",
        )
        prov = module.checkout(buffer).entry.provenance
        assert prov.origin_name == "cart"
        assert prov.origin_function == "checkout"


# ── Flush ────────────────────────────────────────────────────────────

class TestFlush:
    def test_scenario_two_entries(self, buffer, sent_batches):
        buffer.add_error().set_summary("x").set_details("y")
        buffer.add_warning().set_summary("z")

        assert len(buffer) == 2
        assert buffer.flush().result() == 2

        assert len(buffer) == 0
        assert len(sent_batches) == 1
        first, second = sent_batches[0]
        assert (first["category"], first["summary"], first["details"]) == ("Error", "x", "y")
        assert (second["category"], second["summary"]) == ("Warning", "z")

    def test_failure_still_clears(self, immediate_executor, caplog):
        buffer = LogBuffer(_failing_sink(), executor=immediate_executor)
        buffer.add_error().set_summary("lost")

        assert buffer.flush().result() == 0
        assert len(buffer) == 0
        assert "Dropped batch of 1 entries" in caplog.text
        snap = buffer.metrics.snapshot()
        assert snap["batches_failed"] == 1
        assert snap["entries_dropped"] == 1
        assert "backend down" in snap["last_error"]

    def test_unexpected_sink_exception_does_not_propagate(self, immediate_executor):
        class Broken(LoggingSink):
            def send(self, entries):
                raise TypeError("not JSON serializable")

        buffer = LogBuffer(Broken(), executor=immediate_executor)
        buffer.add_info()
        assert buffer.flush().result() == 0

    def test_empty_flush_skips_sink(self, buffer, sent_batches):
        assert buffer.flush().result() == 0
        assert sent_batches == []

    def test_one_call_per_flush(self, buffer, sent_batches):
        for i in range(5):
            buffer.add_debug().set_summary(str(i))
        buffer.flush()
        buffer.add_info()
        buffer.flush()
        assert [len(batch) for batch in sent_batches] == [5, 1]

    def test_payload_fixed_at_flush_time(self, buffer, sent_batches):
        builder = buffer.add_info().set_summary("at flush")
        buffer.flush()
        builder.set_summary("changed later")
        assert sent_batches[0][0]["summary"] == "at flush"

    def test_metrics_on_success(self, buffer):
        buffer.add_info()
        buffer.add_info()
        buffer.flush()
        snap = buffer.metrics.snapshot()
        assert snap["batches_sent"] == 1
        assert snap["entries_sent"] == 2

    def test_rejected_submit_delivers_inline(self, recording_sink, sent_batches, caplog):
        class ClosedExecutor:
            def submit(self, fn, *args):
                raise RuntimeError("cannot schedule new futures after interpreter shutdown")

        buffer = LogBuffer(recording_sink, executor=ClosedExecutor())
        buffer.add_info().set_summary("pending at exit")
        assert buffer.flush().result() == 1
        assert len(buffer) == 0
        assert sent_batches[0][0]["summary"] == "pending at exit"
        assert buffer.metrics.snapshot()["entries_sent"] == 1
        assert "delivering 1 entries inline" in caplog.text

    def test_unserializable_entry_drops_batch(self, buffer, sent_batches, caplog):
        buffer.add_info().set_details(threading.Lock())
        future = buffer.flush()

        assert future.result() == 0
        assert sent_batches == []
        assert len(buffer) == 0
        snapshot = buffer.metrics.snapshot()
        assert snapshot["batches_failed"] == 1
        assert snapshot["entries_dropped"] == 1
        assert "unserializable" in caplog.text

    def test_buffer_usable_after_dropped_batch(self, buffer, sent_batches):
        buffer.add_info().set_details(threading.Lock())
        buffer.flush()
        buffer.add_info().set_summary("next")
        assert buffer.flush().result() == 1
        assert sent_batches[0][0]["summary"] == "next"


class TestBackgroundFlush:
    def test_default_executor_delivers(self, recording_sink, sent_batches):
        buffer = LogBuffer(recording_sink)
        buffer.add_info().set_summary("bg")
        assert buffer.flush().result(timeout=5) == 1
        assert sent_batches[0][0]["summary"] == "bg"

    def test_entries_added_during_flight_wait_for_next_flush(self):
        release = threading.Event()
        batches = []

        def slow_send(entries):
            release.wait(timeout=5)
            batches.append(entries)

        buffer = LogBuffer(CallbackSink(slow_send))
        buffer.add_info().set_summary("first")
        in_flight = buffer.flush()

        buffer.add_info().set_summary("late")
        assert len(buffer) == 1

        release.set()
        assert in_flight.result(timeout=5) == 1
        assert [e["summary"] for e in batches[0]] == ["first"]

        assert buffer.flush().result(timeout=5) == 1
        assert [e["summary"] for e in batches[1]] == ["late"]


# ── Save-and-flush shortcuts ─────────────────────────────────────────

class TestSaveAndFlush:
    @pytest.mark.parametrize("method, category", [
        ("error", "Error"),
        ("warning", "Warning"),
        ("debug", "Debug"),
        ("info", "Event"),
    ])
    def test_populates_and_flushes(self, buffer, sent_batches, method, category):
        getattr(buffer, method)("Frontend", "Checkout", "Summary text", "Detail text")
        assert len(buffer) == 0
        (entry,) = sent_batches[0]
        assert entry["category"] == category
        assert entry["type"] == "Frontend"
        assert entry["area"] == "Checkout"
        assert entry["summary"] == "Summary text"
        assert entry["details"] == "Detail text"

    def test_shortcut_flushes_earlier_entries_too(self, buffer, sent_batches):
        buffer.add_debug().set_summary("queued")
        buffer.info("Frontend", "Render", "done")
        assert [e["summary"] for e in sent_batches[0]] == ["queued", "done"]

    def test_exception_shortcut(self, buffer, sent_batches):
        try:
            raise LookupError("no contact")
        except LookupError as exc:
            buffer.exception(exc)
        (entry,) = sent_batches[0]
        assert entry["error"]["type_name"] == "LookupError"
        assert entry["type"] == "LookupError"


# ── Lifecycle ────────────────────────────────────────────────────────

class TestLifecycle:
    def test_context_manager_flushes_pending(self, recording_sink, sent_batches, immediate_executor):
        with LogBuffer(recording_sink, executor=immediate_executor) as buffer:
            buffer.add_info().set_summary("on exit")
        assert sent_batches[0][0]["summary"] == "on exit"
        assert len(buffer) == 0

    def test_context_manager_flushes_on_error(self, recording_sink, sent_batches, immediate_executor):
        with pytest.raises(ValueError):
            with LogBuffer(recording_sink, executor=immediate_executor) as buffer:
                buffer.add_error().set_summary("before crash")
                raise ValueError("crash")
        assert sent_batches[0][0]["summary"] == "before crash"

    def test_timings_feed_duration(self, buffer):
        buffer.timings.start("render")
        elapsed = buffer.timings.end("render")
        entry = buffer.add_info().set_duration(elapsed).entry
        assert entry.duration is not None and entry.duration >= 0

    def test_from_config_uses_markers(self, recording_sink, immediate_executor):
        config = ClientConfig(module_marker="/widgets/", component_marker="/pages/")
        buffer = LogBuffer.from_config(config, sink=recording_sink, executor=immediate_executor)
        prov = buffer.add_error().set_error({
            "message": "m",
            "stack": "at /srv/widgets/nav/nav.js:1:1 open (x)",
        }).entry.provenance
        assert prov.origin_kind is OriginKind.FRONTEND_MODULE
        assert prov.origin_name == "nav"

    def test_from_config_builds_sink(self):
        buffer = LogBuffer.from_config(ClientConfig(sink="logging"))
        assert len(buffer) == 0
    def test_context_manager_closes_sink_it_created(self, monkeypatch, sent_batches, immediate_executor):
        closed = []

        class TrackingSink(CallbackSink):
            def close(self):
                closed.append(True)

        monkeypatch.setattr(
            "component_logger.buffer.create_sink",
            lambda config: TrackingSink(sent_batches.append),
        )
        with LogBuffer.from_config(ClientConfig(sink="udp"), executor=immediate_executor) as buffer:
            buffer.add_info().set_summary("last")

        assert sent_batches[0][0]["summary"] == "last"
        assert closed == [True]

    def test_context_manager_leaves_caller_sink_open(self, sent_batches, immediate_executor):
        closed = []

        class TrackingSink(CallbackSink):
            def close(self):
                closed.append(True)

        sink = TrackingSink(sent_batches.append)
        with LogBuffer.from_config(ClientConfig(), sink=sink, executor=immediate_executor) as buffer:
            buffer.add_info()

        assert len(sent_batches) == 1
        assert closed == []

    def test_close_waits_for_background_delivery(self, recording_sink, sent_batches):
        buffer = LogBuffer(recording_sink)
        buffer.add_info().set_summary("queued")
        buffer.flush()
        buffer.close()
        assert sent_batches[0][0]["summary"] == "queued"
