#!/usr/bin/env python
"""Simple health check utility.

This script prints whether the TokBox client settings are present in the
environment, either directly or through a ``*_FILE`` path.  Operators can
run it before deploying a service that embeds the client.  Values are never
printed.
"""

from __future__ import annotations

import os


def main() -> None:
    required = ["TOKBOX_API_KEY", "TOKBOX_API_SECRET"]
    optional = [
        "TOKBOX_API_URL",
        "TOKBOX_AUTH_TTL",
        "TOKBOX_REQUEST_TIMEOUT",
        "TOKBOX_BULK_WORKERS",
        "TOKBOX_SECRETS_BASE_PATH",
        "LOG_LEVEL",
    ]
    print("Health Check:")
    ok = True
    for key in required:
        if os.environ.get(f"{key}_FILE"):
            status = "set (file)"
        elif os.environ.get(key):
            status = "set"
        else:
            status = "missing"
            ok = False
        print(f"{key}: {status}")
    for key in optional:
        status = "set" if os.environ.get(key) else "default"
        print(f"{key}: {status}")
    raise SystemExit(0 if ok else 1)


if __name__ == "__main__":
    main()
