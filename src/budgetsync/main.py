from __future__ import annotations

import logging
import os

from dotenv import load_dotenv


def main() -> int:
    load_dotenv()

    logging.basicConfig(
        level=getattr(logging, os.getenv("LOG_LEVEL", "WARNING").upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    from budgetsync.interface.cli import main as cli_main

    return cli_main()


if __name__ == "__main__":
    raise SystemExit(main())
