"""Per-file label cleanup: drop ignored labels, merge joined label groups."""

from typing import Iterable, Sequence

import numpy as np

from songseq.types import FileAnnotation


def drop_ignored(annotation: FileAnnotation, ignore_entries: Iterable[int]) -> FileAnnotation:
    """Remove every segment whose label is ignored, trimming all arrays together."""
    ignore = list(ignore_entries)
    if not ignore:
        return annotation
    keep = ~np.isin(annotation.labels, ignore)
    return annotation.select(keep)


def join_labels(
    annotation: FileAnnotation,
    join_entries: Sequence[Sequence[int]],
) -> FileAnnotation:
    """Relabel each join-group member with the group's first label.

    Groups are applied in the given order.
    """
    if not join_entries:
        return annotation
    labels = annotation.labels.copy()
    for group in join_entries:
        labels[np.isin(labels, list(group))] = group[0]
    return annotation.with_labels(labels)


def normalize_labels(
    annotation: FileAnnotation,
    ignore_entries: Iterable[int] = (),
    join_entries: Sequence[Sequence[int]] = (),
) -> FileAnnotation:
    """Apply ignore then join; must run before phrases are computed."""
    return join_labels(drop_ignored(annotation, ignore_entries), join_entries)
