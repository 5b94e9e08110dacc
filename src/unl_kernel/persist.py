"""
Writing a signed document to disk.
"""

import json
import logging
from pathlib import Path

from .document import ListDocument

logger = logging.getLogger(__name__)


def serialize_document(document: ListDocument) -> str:
    """Compact JSON, the form nodes fetch."""
    return json.dumps(document.to_dict(), separators=(",", ":"))


def write_document(document: ListDocument, path: str | Path) -> bool:
    """
    Write ``document`` to ``path``.

    Returns:
        True on success, False if the file could not be written
    """
    path = Path(path)
    try:
        path.write_text(serialize_document(document), encoding="utf-8")
    except OSError as exc:
        logger.error("could not write %s: %s", path, exc)
        return False
    logger.info("wrote version %d document to %s", document.version, path)
    return True
