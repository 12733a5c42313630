"""examples/file_sink_usage.py - Configure and toggle the rotating file sink.

Shows FileSinkConfig (explicit and from SESSIONLOG_* variables), a tiny size
limit to force rotation, and disable_file() / enable_file().

Run:
    SESSIONLOG_MAX_FILES=3 python examples/file_sink_usage.py
    ls /tmp/sessionlog_files
"""

import os

from sessionlog import ContextLogger, FileSinkConfig

LOG_DIR = "/tmp/sessionlog_files"

config = FileSinkConfig.from_env(base=FileSinkConfig(max_size="1k"))
log = ContextLogger(LOG_DIR, file_config=config)


if __name__ == "__main__":
    for index in range(20):
        log.debug(f"row {index}", {"payload": "x" * 64})

    log.disable_file()
    log.info("This line only reaches the console")
    log.enable_file()
    log.info("File logging is back")
    log.close()

    print()
    print(f"Files in {LOG_DIR}:")
    for name in sorted(os.listdir(LOG_DIR)):
        print(f"  {name}")
