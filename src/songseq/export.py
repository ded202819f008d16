"""Write conversion results to disk."""

import json
import logging
import os
import tempfile
from pathlib import Path

from songseq.annotations import store_to_dict
from songseq.types import AnnotationStore, ConversionResult

logger = logging.getLogger(__name__)


def _atomic_write(target: Path, data: bytes) -> None:
    """Write data to target atomically via temp file + rename."""
    target.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=target.parent, suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.replace(tmp, target)
    except Exception:
        if os.path.exists(tmp):
            os.unlink(tmp)
        raise


def write_result(result: ConversionResult, path: str | Path) -> Path:
    """Write the full result (symbol table, bouts, warnings) as JSON."""
    path = Path(path)
    _atomic_write(path, json.dumps(result.to_dict(), indent=2).encode())
    logger.info(f"Wrote {len(result.bouts)} bout(s) to {path}")
    return path


def write_strings(result: ConversionResult, path: str | Path) -> Path:
    """Write one bout string per line."""
    path = Path(path)
    text = "".join(f"{s}\n" for s in result.strings)
    _atomic_write(path, text.encode())
    logger.info(f"Wrote {len(result.strings)} string(s) to {path}")
    return path


def write_store(store: AnnotationStore, path: str | Path) -> Path:
    """Write an annotation store in the JSON layout load_annotations reads.

    Lets a MATLAB store be converted once and then read without scipy.io.
    """
    path = Path(path)
    _atomic_write(path, json.dumps(store_to_dict(store), indent=2).encode())
    logger.info(f"Wrote {len(store)} annotated file(s) to {path}")
    return path
