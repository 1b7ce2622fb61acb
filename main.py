"""Demo client — one simulated unit of work logged through a LogBuffer."""

import logging
import random
import time

from component_logger.buffer import LogBuffer
from component_logger.config import load_client_config
from component_logger.models import LogType

SAMPLE_AREAS = ["Render", "getContacts", "Checkout", "Search"]


def load_contacts(size_limit: int) -> list[dict]:
    time.sleep(random.uniform(0.01, 0.05))
    if random.random() < 0.3:
        raise ConnectionError("contact service unavailable")
    return [{"id": f"003{i:05d}", "name": f"Contact {i}"} for i in range(size_limit)]


def run_unit_of_work(buffer: LogBuffer):
    timings = buffer.timings
    timings.start("render")

    buffer.add_debug().set_area("Render").set_summary("Rendering contact list")

    timings.start("getContacts")
    try:
        contacts = load_contacts(5)
    except ConnectionError as exc:
        buffer.record_exception(exc).set_area("getContacts").set_details("size_limit=5")
    else:
        elapsed = timings.end("getContacts")
        (buffer.add_info()
            .set_type(LogType.FRONTEND.value)
            .set_area("getContacts")
            .set_summary(f"Loaded {len(contacts)} contacts in {elapsed:.1f}ms")
            .set_duration(elapsed))

    if random.random() < 0.5:
        buffer.add_warning().set_area(random.choice(SAMPLE_AREAS)).set_summary("Slow interaction")

    elapsed = timings.end("render")
    buffer.add_info().set_area("Render").set_summary("Rendered").set_duration(elapsed)
    return buffer.flush()


def main(argv=None):
    config = load_client_config(argv)
    logging.basicConfig(
        level=config.diagnostic_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    logger = logging.getLogger(__name__)
    logger.info("Shipping component logs via %s sink", config.sink)

    with LogBuffer.from_config(config) as buffer:
        delivered = run_unit_of_work(buffer).result(timeout=config.sink_timeout + 5)

    logger.info(
        "Transaction %s: delivered %d entries, metrics=%s",
        buffer.transaction_id, delivered, buffer.metrics.snapshot(),
    )


if __name__ == "__main__":
    main()
