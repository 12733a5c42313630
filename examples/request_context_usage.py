"""examples/request_context_usage.py - One derived logger per concurrent request.

Each worker thread derives its own logger with with_session() / with_tags().
The derived loggers share the parent's sinks but never each other's context,
so request ids cannot bleed between threads.

Run:
    python examples/request_context_usage.py
"""

import threading
import time
import uuid

from sessionlog import ContextLogger

log = ContextLogger("/tmp/sessionlog_requests", session={"service": "orders"})


def handle_request(order_id: int, qty: int) -> None:
    """Simulate one HTTP request with its own logging context."""
    req = log.with_session({"request_id": uuid.uuid4().hex[:8], "order_id": order_id})
    req = req.with_tags("http", threading.current_thread().name)

    req.info("Order *received*", {"qty": qty})
    time.sleep(0.05)
    if qty > 5:
        req.error("Insufficient stock", {"requested": qty, "available": 5})
        return
    req.success("Order _placed_")


if __name__ == "__main__":
    threads = [
        threading.Thread(target=handle_request, args=(1001, 3), name="worker-a"),
        threading.Thread(target=handle_request, args=(1002, 9), name="worker-b"),
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    # The parent context is untouched by the workers.
    log.info("Parent session", log.session)
    log.close()
