"""
Command-line interface for running the TrendSpotter application.

Usage:

```
python -m trendspotter.frontend.main [server|ui|both|seed|reset]
```

* ``server`` - start the API server (port ``TRENDSPOTTER_API_PORT``,
  default 8001).
* ``ui`` - start the Streamlit UI on port 8000.
* ``both`` - the default; start the API server in a background thread
  and then launch the UI.
* ``seed`` - create tables, the admin account and, if the catalogue is
  empty, the sample products.
* ``reset`` - delete every product and reload the sample catalogue.

``LOG_LEVEL`` controls logging verbosity (default ``INFO``).
"""

from __future__ import annotations

import logging
import os
import subprocess
import sys
import threading
import time
from pathlib import Path

logger = logging.getLogger(__name__)

COMMANDS = ("server", "ui", "both", "seed", "reset")


def configure_logging() -> None:
    level = os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def run_server() -> None:
    """Start the API server."""
    from trendspotter.backend import api_server
    api_server.run(host="0.0.0.0")


def run_ui() -> None:
    """Start the Streamlit UI on port 8000."""
    app_path = Path(__file__).parent / "app.py"
    # Streamlit runs in its own process so it does not share the
    # event loop used by the API server thread.
    subprocess.run([
        sys.executable,
        "-m",
        "streamlit",
        "run",
        str(app_path),
        "--server.port",
        "8000",
        "--server.address",
        "0.0.0.0",
    ], check=False)


def run_both() -> None:
    """Start the API server in a background thread and then launch the UI."""
    server_thread = threading.Thread(target=run_server, daemon=True)
    server_thread.start()
    # Give the server a moment to start up
    time.sleep(2)
    run_ui()


def run_seed() -> None:
    from trendspotter.backend.seed import seed_database
    result = seed_database()
    print(f"Database seeded: {result['products_loaded']} sample products loaded")


def run_reset() -> None:
    from trendspotter.backend.seed import reset_products
    result = reset_products()
    print(f"Removed {result['products_removed']} products, loaded {result['products_loaded']} sample products")


def main() -> None:
    """Entry point for the CLI.

    Parses the first command-line argument to determine which command
    to run.  Defaults to ``both`` if no argument is supplied.
    """
    configure_logging()
    args = sys.argv[1:]
    command = args[0].lower() if args else "both"
    if command == "server":
        run_server()
    elif command == "ui":
        run_ui()
    elif command == "both":
        run_both()
    elif command == "seed":
        run_seed()
    elif command == "reset":
        run_reset()
    else:
        print(f"Unknown command: {command}. Expected one of: {', '.join(COMMANDS)}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()
