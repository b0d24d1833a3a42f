#!/usr/bin/env python3
"""Launch the TruckMap API under uvicorn, honouring the platform's PORT variable."""

import os
import subprocess
import sys

APP_MODULE = "truckmap.main:app"


def resolve_port() -> int:
    port = os.environ.get("PORT", "8000")
    try:
        return int(port)
    except ValueError:
        print(f"Warning: Invalid PORT value '{port}', using default 8000", file=sys.stderr)
        return 8000


def main() -> int:
    src_path = os.path.abspath("src")
    if os.path.isdir(src_path):
        existing = os.environ.get("PYTHONPATH", "")
        os.environ["PYTHONPATH"] = f"{src_path}:{existing}" if existing else src_path

    port = resolve_port()
    cmd = [
        sys.executable,
        "-m",
        "uvicorn",
        APP_MODULE,
        "--host",
        "0.0.0.0",
        "--port",
        str(port),
        "--proxy-headers",
        "--forwarded-allow-ips",
        "*",
    ]

    print(f"Starting {APP_MODULE} on port {port}...", file=sys.stderr)
    try:
        return subprocess.call(cmd)
    except KeyboardInterrupt:
        print("Server interrupted by user", file=sys.stderr)
        return 0


if __name__ == "__main__":
    sys.exit(main())
