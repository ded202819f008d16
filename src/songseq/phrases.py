"""Phrase boundaries: maximal runs of consecutive same-label segments."""

from typing import Callable

from songseq.types import FileAnnotation, Phrase

PhraseFinder = Callable[[FileAnnotation], list[Phrase]]


def find_phrases(annotation: FileAnnotation) -> list[Phrase]:
    """Group consecutive equal labels into phrases.

    A phrase spans from its first segment's start to its last segment's end.
    """
    phrases: list[Phrase] = []
    n = len(annotation)
    i = 0
    while i < n:
        label = annotation.labels[i]
        j = i
        while j + 1 < n and annotation.labels[j + 1] == label:
            j += 1
        phrases.append(Phrase(
            label=int(label),
            start=float(annotation.starts[i]),
            end=float(annotation.ends[j]),
        ))
        i = j + 1
    return phrases
