"""Module entrypoint for running the invoice API server."""

from __future__ import annotations

import sys

from .config import HOST, PORT
from .fonts import FontNotFoundError
from .logging_config import configure_logging
from .server import DependencyError, run


def main() -> None:
    configure_logging()
    try:
        run(HOST, PORT)
    except (DependencyError, FontNotFoundError) as exc:
        print(str(exc), file=sys.stderr)
        raise SystemExit(1) from exc
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
