"""examples/basic_usage.py - sessionlog tour.

Demonstrates the level methods, inline emphasis, attached data, session and
tags, the divider and the timer.

Run:
    python examples/basic_usage.py
    cat /tmp/sessionlog_demo/*.log
"""

import time
from datetime import datetime

from sessionlog import ContextLogger

log = ContextLogger("/tmp/sessionlog_demo")


if __name__ == "__main__":
    # -----------------------------------------------------------------------
    # Levels and markup
    # -----------------------------------------------------------------------
    log.info("Deploy *started*", {"version": "1.4.2", "at": datetime.now()})
    log.debug("Reading manifest from _./deploy.toml_")
    log.warn("Cache is *stale*, rebuilding")
    log.success("Artifacts uploaded")
    log.error("Health check _failed_ once, retrying", {"attempt": 1})
    log.divider()

    # -----------------------------------------------------------------------
    # Session: mutate in place, then undo
    # -----------------------------------------------------------------------
    undo = log.add_session({"region": "eu-west-1"})
    log.info("Switching traffic")
    undo()
    log.info("Session after undo has no region")

    # -----------------------------------------------------------------------
    # Timer
    # -----------------------------------------------------------------------
    with log.timer("warm-up"):
        time.sleep(0.6)

    log.close()
