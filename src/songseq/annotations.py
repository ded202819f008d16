"""Load annotation stores from MATLAB (.mat) or JSON files.

Both formats carry a list of file names (`keys`) and a parallel list of
segment records (`elements`), each with the fields

    segType             integer syllable label per segment
    segAbsStartTimes    absolute start time per segment
    segFileStartTimes   start time within the file (seconds)
    segFileEndTimes     end time within the file (seconds)

JSON stores may also be written as a mapping of file name -> record.
"""

import json
import logging
from collections import Counter
from pathlib import Path

import numpy as np
from scipy.io import loadmat

from songseq.types import AnnotationStore, FileAnnotation

logger = logging.getLogger(__name__)

_FIELDS = ("segType", "segAbsStartTimes", "segFileStartTimes", "segFileEndTimes")


def _ensure_string(value) -> str:
    """Convert a MATLAB-loaded value into a plain Python string."""
    if isinstance(value, str):
        return value
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="ignore")
    if isinstance(value, np.ndarray):
        if value.size == 0:
            return ""
        if value.dtype.kind in {"U", "S"}:
            return "".join(value.astype(str).ravel(order="F").tolist())
    return str(value)


def _as_list(value) -> list:
    """Flatten a MATLAB cell array (or a lone squeezed element) into a list."""
    if isinstance(value, np.ndarray) and value.dtype == object:
        return list(value.ravel())
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def _get_field(element, name: str):
    if isinstance(element, dict):
        return element.get(name)
    return getattr(element, name, None)


def _make_annotation(name: str, element, source: Path) -> FileAnnotation:
    values = []
    for field_name in _FIELDS:
        value = _get_field(element, field_name)
        if value is None:
            raise ValueError(f"Missing '{field_name}' for {name!r} in {source}")
        values.append(np.atleast_1d(np.asarray(value)).reshape(-1))
    labels, abs_starts, starts, ends = values
    return FileAnnotation(name, labels, abs_starts, starts, ends)


def _build_store(keys: list, elements: list, source: Path) -> AnnotationStore:
    if len(keys) != len(elements):
        raise ValueError(
            f"{source}: {len(keys)} keys but {len(elements)} elements"
        )
    store: AnnotationStore = {}
    for key, element in zip(keys, elements):
        name = _ensure_string(key)
        store[name] = _make_annotation(name, element, source)
    return store


def _load_mat(path: Path) -> AnnotationStore:
    data = loadmat(str(path), squeeze_me=True, struct_as_record=False)
    if "keys" not in data or "elements" not in data:
        raise ValueError(f"{path} has no 'keys'/'elements' variables")
    return _build_store(_as_list(data["keys"]), _as_list(data["elements"]), path)


def _load_json(path: Path) -> AnnotationStore:
    data = json.loads(path.read_text())
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a JSON object at top level")
    if "keys" in data and "elements" in data:
        return _build_store(list(data["keys"]), list(data["elements"]), path)
    return _build_store(list(data.keys()), list(data.values()), path)


def load_annotations(path: str | Path) -> AnnotationStore:
    """Read an annotation store, keeping the file order of the source.

    Raises:
        FileNotFoundError: if the file does not exist.
        ValueError: if the format is unknown or the content is malformed.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Annotation file not found: {path}")

    suffix = path.suffix.lower()
    if suffix == ".mat":
        store = _load_mat(path)
    elif suffix == ".json":
        try:
            store = _load_json(path)
        except json.JSONDecodeError as e:
            raise ValueError(f"{path}: invalid JSON ({e})") from e
    else:
        raise ValueError(f"Unsupported annotation format: {path.suffix or path.name}")

    logger.info(f"Loaded {len(store)} annotated files from {path.name}")
    return store


def store_to_dict(store: AnnotationStore) -> dict:
    """Serialize a store to the JSON layout read by load_annotations."""
    return {
        "keys": list(store.keys()),
        "elements": [
            {
                "segType": a.labels.tolist(),
                "segAbsStartTimes": a.abs_starts.tolist(),
                "segFileStartTimes": a.starts.tolist(),
                "segFileEndTimes": a.ends.tolist(),
            }
            for a in store.values()
        ],
    }


def label_counts(store: AnnotationStore) -> Counter:
    """Number of segments per label across the whole store."""
    counts: Counter = Counter()
    for annotation in store.values():
        counts.update(int(v) for v in annotation.labels)
    return counts
