#!/usr/bin/env python3
"""
Local entrypoint: `python3 server.py`.

Host, port and log level come from WHEALTHY_HOST / WHEALTHY_PORT /
WHEALTHY_LOG_LEVEL.
"""

from whealthy_app.main import app, run


if __name__ == "__main__":
    run()
