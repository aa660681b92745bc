"""Per-request temporary PDF files."""

from __future__ import annotations

import logging
import os
import uuid
from contextlib import contextmanager
from typing import Iterator

logger = logging.getLogger(__name__)

ARTIFACT_SUFFIX = ".pdf"


def new_artifact_path(directory: str) -> str:
    return os.path.join(directory, f"{uuid.uuid4()}{ARTIFACT_SUFFIX}")


@contextmanager
def invoice_artifact(directory: str) -> Iterator[str]:
    """Create a uniquely named file in ``directory`` and remove it on exit.

    The file is created exclusively before it is handed out, so two requests
    can never share a path. Removal runs on every exit path; a failed removal
    is logged and swallowed because the response has usually been sent by
    then.
    """
    os.makedirs(directory, exist_ok=True)
    path = new_artifact_path(directory)
    fd = os.open(path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o600)
    os.close(fd)
    try:
        yield path
    finally:
        try:
            os.remove(path)
        except FileNotFoundError:
            pass
        except OSError as exc:
            logger.warning("Could not delete invoice artifact %s: %s", path, exc)
        else:
            logger.debug("Deleted invoice artifact %s", path)
