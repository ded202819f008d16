"""Bout segmentation and per-bout output alignment.

Phrases of one file are visited in time order. Consecutive phrases whose
gap (next start minus previous end) is at most `max_sep` belong to the same
bout; a larger gap closes the current bout and opens a new one at the next
phrase. Each phrase covers the segments whose midpoint lies strictly inside
its span; those segments are recorded under the phrase's 1-based position
within the bout.

A closed bout is kept only if it covers at least `min_phrases` distinct
phrase positions. Kept bouts are turned into aligned arrays: the symbol
string, durations, inter-syllable gaps, phrase indices and feature columns
all describe the same syllables in the same order.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Iterator

import numpy as np

from songseq.symbols import ONSET_VALUE, OFFSET_VALUE, UNKNOWN_SYMBOL, SymbolTable
from songseq.types import Bout, FileAnnotation, Phrase

logger = logging.getLogger(__name__)


@dataclass
class BoutAccumulator:
    """A bout under construction."""
    labels: list[int] = field(default_factory=lambda: [ONSET_VALUE])
    locs: list[int] = field(default_factory=list)
    phrase_indices: list[int] = field(default_factory=list)
    phrase_count: int = 0

    def add_phrase(self, phrase: Phrase, locs) -> None:
        self.phrase_count += 1
        # Only phrases that contributed syllables count towards the symbol set
        if len(locs):
            self.labels.append(phrase.label)
        self.locs.extend(int(i) for i in locs)
        self.phrase_indices.extend([self.phrase_count] * len(locs))

    @property
    def distinct_phrases(self) -> int:
        """Number of phrase positions that captured at least one segment."""
        return len(set(self.phrase_indices))


def covered_segments(midpoints: np.ndarray, phrase: Phrase) -> np.ndarray:
    """Indices of segments whose midpoint falls strictly inside the phrase.

    Segments centred exactly on a phrase edge belong to no phrase.
    """
    return np.flatnonzero((midpoints > phrase.start) & (midpoints < phrase.end))


def segment_bouts(
    annotation: FileAnnotation,
    phrases: list[Phrase],
    max_sep: float,
) -> Iterator[BoutAccumulator]:
    """Yield every bout candidate of one file, in time order."""
    if not phrases:
        return
    midpoints = annotation.midpoints
    current = BoutAccumulator()
    current.add_phrase(phrases[0], covered_segments(midpoints, phrases[0]))
    for prev, phrase in zip(phrases, phrases[1:]):
        gap = phrase.start - prev.end
        if gap > max_sep:
            yield current
            current = BoutAccumulator()
        current.add_phrase(phrase, covered_segments(midpoints, phrase))
    yield current


def encode_labels(labels, table: SymbolTable) -> str:
    """Map syllable labels to their characters, UNKNOWN_SYMBOL where missing."""
    return "".join(
        table.char_for(int(label)) if int(label) in table else UNKNOWN_SYMBOL
        for label in labels
    )


def check_phrase_labels(
    phrases: list[Phrase],
    table: SymbolTable,
    file_name: str = "",
    warnings: list[str] | None = None,
) -> set[int]:
    """Warn about phrase labels that have no symbol; return those labels.

    Each missing label is reported once per file, through the log and the
    optional `warnings` list.
    """
    missing = sorted({p.label for p in phrases if p.label not in table})
    for label in missing:
        message = (
            f"Syllable number {label} does not exist in valid syllables"
            f"{f' ({file_name})' if file_name else ''}. Results may be corrupt"
        )
        logger.warning(message)
        if warnings is not None:
            warnings.append(message)
    return set(missing)


def accept_bout(
    acc: BoutAccumulator,
    annotation: FileAnnotation,
    table: SymbolTable,
    min_phrases: int,
    file_number: int,
    file_date: date,
    onset_sym: str = "1",
    offset_sym: str = "2",
    features: dict[str, np.ndarray] | None = None,
) -> Bout | None:
    """Turn a finished bout candidate into an aligned Bout record.

    Returns None for candidates with fewer than `min_phrases` distinct
    phrase positions.
    """
    if acc.distinct_phrases < min_phrases:
        logger.debug(
            f"Discarding bout in {annotation.name}: "
            f"{acc.distinct_phrases} phrase(s) < {min_phrases}"
        )
        return None

    locs = np.asarray(acc.locs, dtype=np.int64)
    starts = annotation.starts[locs]
    ends = annotation.ends[locs]

    return Bout(
        symbols=f"{onset_sym}{encode_labels(annotation.labels[locs], table)}{offset_sym}",
        durations=ends - starts,
        gaps=starts[1:] - ends[:-1],
        phrase_indices=np.asarray(acc.phrase_indices, dtype=np.int64),
        file_number=file_number,
        file_date=file_date,
        labels=tuple(acc.labels),
        features={
            name: matrix[:, locs] for name, matrix in (features or {}).items()
        },
    )


def bouts_for_file(
    annotation: FileAnnotation,
    phrases: list[Phrase],
    table: SymbolTable,
    max_sep: float,
    min_phrases: int,
    file_number: int,
    file_date: date,
    onset_sym: str = "1",
    offset_sym: str = "2",
    features: dict[str, np.ndarray] | None = None,
    warnings: list[str] | None = None,
) -> list[Bout]:
    """Segment one file and return its accepted bouts in time order."""
    check_phrase_labels(phrases, table, annotation.name, warnings)
    accepted = []
    for acc in segment_bouts(annotation, phrases, max_sep):
        bout = accept_bout(
            acc, annotation, table, min_phrases,
            file_number=file_number,
            file_date=file_date,
            onset_sym=onset_sym,
            offset_sym=offset_sym,
            features=features,
        )
        if bout is not None:
            accepted.append(bout)
    return accepted


def seen_labels(bouts: list[Bout]) -> set[int]:
    """Labels that survive pruning: every phrase label of every bout plus both sentinels."""
    seen: set[int] = set()
    for bout in bouts:
        seen.update(bout.labels)
    if bouts:
        seen.update((ONSET_VALUE, OFFSET_VALUE))
    return seen
