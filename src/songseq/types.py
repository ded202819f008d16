"""Core data types for songseq."""

from dataclasses import dataclass, field
from datetime import date
from typing import Iterator

import numpy as np

from songseq.symbols import SymbolTable


@dataclass
class Segment:
    """A single labeled syllable instance."""
    label: int
    start: float        # file-relative (seconds)
    end: float          # file-relative (seconds)
    abs_start: float    # absolute recording time (seconds)

    @property
    def duration(self) -> float:
        return self.end - self.start

    @property
    def midpoint(self) -> float:
        return (self.start + self.end) / 2


@dataclass
class Phrase:
    """A maximal run of consecutive same-label segments."""
    label: int
    start: float
    end: float


class FileAnnotation:
    """Segment record of one annotated file: four aligned arrays.

    Segments are expected in temporal order and non-overlapping. All
    transformations return new objects and keep the arrays in lock-step.
    """

    def __init__(self, name: str, labels, abs_starts, starts, ends):
        self.name = name
        self.labels = np.asarray(labels, dtype=np.int64).reshape(-1)
        self.abs_starts = np.asarray(abs_starts, dtype=np.float64).reshape(-1)
        self.starts = np.asarray(starts, dtype=np.float64).reshape(-1)
        self.ends = np.asarray(ends, dtype=np.float64).reshape(-1)
        sizes = {len(self.labels), len(self.abs_starts), len(self.starts), len(self.ends)}
        if len(sizes) != 1:
            raise ValueError(
                f"Segment arrays of {name!r} differ in length: "
                f"labels={len(self.labels)}, abs_starts={len(self.abs_starts)}, "
                f"starts={len(self.starts)}, ends={len(self.ends)}"
            )

    def __len__(self) -> int:
        return len(self.labels)

    def __repr__(self) -> str:
        return f"FileAnnotation({self.name!r}, {len(self)} segments)"

    @property
    def durations(self) -> np.ndarray:
        return self.ends - self.starts

    @property
    def midpoints(self) -> np.ndarray:
        return (self.ends + self.starts) / 2

    def segments(self) -> Iterator[Segment]:
        for i in range(len(self)):
            yield Segment(
                label=int(self.labels[i]),
                start=float(self.starts[i]),
                end=float(self.ends[i]),
                abs_start=float(self.abs_starts[i]),
            )

    def select(self, mask) -> "FileAnnotation":
        """Return a copy holding only the segments where mask is True."""
        mask = np.asarray(mask, dtype=bool)
        return FileAnnotation(
            self.name,
            self.labels[mask],
            self.abs_starts[mask],
            self.starts[mask],
            self.ends[mask],
        )

    def with_labels(self, labels) -> "FileAnnotation":
        """Return a copy with the label array replaced."""
        return FileAnnotation(self.name, labels, self.abs_starts, self.starts, self.ends)


# Ordered mapping of file name -> annotation; insertion order is the file sequence.
AnnotationStore = dict[str, FileAnnotation]


@dataclass(frozen=True)
class Bout:
    """An accepted bout: symbol string plus per-syllable arrays."""
    symbols: str                # onset sentinel + one char per syllable + offset sentinel
    durations: np.ndarray       # seconds, one per syllable
    gaps: np.ndarray            # seconds, one per adjacent syllable pair
    phrase_indices: np.ndarray  # 1-based phrase number within the bout
    file_number: int            # 1-based position of the source file
    file_date: date
    labels: tuple[int, ...]     # phrase labels seen, onset sentinel first
    day_index: int = 0          # assigned once all files are processed
    features: dict[str, np.ndarray] = field(default_factory=dict)

    @property
    def n_syllables(self) -> int:
        return len(self.durations)

    def to_dict(self) -> dict:
        """Serialize for JSON output."""
        return {
            "symbols": self.symbols,
            "durations": [round(float(d), 6) for d in self.durations],
            "gaps": [round(float(g), 6) for g in self.gaps],
            "phrase_indices": [int(i) for i in self.phrase_indices],
            "file_number": self.file_number,
            "file_date": self.file_date.isoformat(),
            "day_index": self.day_index,
            "features": {
                name: matrix.tolist() for name, matrix in self.features.items()
            },
        }


@dataclass
class ConversionResult:
    """Output of one conversion run, aligned by bout index."""
    bouts: list[Bout]
    symbol_table: SymbolTable
    warnings: list[str] = field(default_factory=list)

    @classmethod
    def empty(cls) -> "ConversionResult":
        return cls(bouts=[], symbol_table=SymbolTable([], []))

    @property
    def strings(self) -> list[str]:
        return [b.symbols for b in self.bouts]

    @property
    def durations(self) -> list[np.ndarray]:
        return [b.durations for b in self.bouts]

    @property
    def gaps(self) -> list[np.ndarray]:
        return [b.gaps for b in self.bouts]

    @property
    def phrase_indices(self) -> list[np.ndarray]:
        return [b.phrase_indices for b in self.bouts]

    @property
    def file_numbers(self) -> list[int]:
        return [b.file_number for b in self.bouts]

    @property
    def day_indices(self) -> list[int]:
        return [b.day_index for b in self.bouts]

    @property
    def syllables(self) -> list[int]:
        """Label values of the pruned symbol table, sentinels first."""
        return list(self.symbol_table.values)

    @property
    def symbols(self) -> list[str]:
        return list(self.symbol_table.chars)

    @property
    def brainard_features(self) -> list[np.ndarray]:
        return [b.features["brainard"] for b in self.bouts if "brainard" in b.features]

    @property
    def tchernichovski_features(self) -> list[np.ndarray]:
        return [b.features["tchernichovski"] for b in self.bouts if "tchernichovski" in b.features]

    def to_dict(self) -> dict:
        """Serialize for JSON output."""
        return {
            "symbol_table": self.symbol_table.to_dict(),
            "bouts": [b.to_dict() for b in self.bouts],
            "warnings": list(self.warnings),
        }
