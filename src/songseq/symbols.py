"""Symbol table: syllable label values <-> single characters.

Every label kept for a run gets one printable character. Two reserved
sentinel values bracket each bout string: ONSET_VALUE maps to the onset
character and OFFSET_VALUE to the offset character. Labels take letters
from ALPHABET in order, skipping any letter already used by a sentinel.
"""

import logging
from typing import Iterable

import numpy as np

logger = logging.getLogger(__name__)

ONSET_VALUE = -1000
OFFSET_VALUE = 1000
ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz"

# Written in place of syllables whose label has no symbol, keeping the
# string aligned with the per-syllable arrays.
UNKNOWN_SYMBOL = "?"


class SymbolTable:
    """Ordered bijection between label values and characters."""

    def __init__(self, values: Iterable[int], chars: Iterable[str]):
        self.values = tuple(int(v) for v in values)
        self.chars = tuple(chars)
        if len(self.values) != len(self.chars):
            raise ValueError(
                f"{len(self.values)} values but {len(self.chars)} characters"
            )
        self._by_value = dict(zip(self.values, self.chars))
        self._by_char = dict(zip(self.chars, self.values))
        if len(self._by_value) != len(self.values) or len(self._by_char) != len(self.chars):
            raise ValueError("symbol table values and characters must be unique")

    def __len__(self) -> int:
        return len(self.values)

    def __contains__(self, value) -> bool:
        return value in self._by_value

    def __eq__(self, other) -> bool:
        if not isinstance(other, SymbolTable):
            return NotImplemented
        return self.values == other.values and self.chars == other.chars

    def __repr__(self) -> str:
        pairs = ", ".join(f"{v}:{c}" for v, c in zip(self.values, self.chars))
        return f"SymbolTable({pairs})"

    def char_for(self, value: int) -> str:
        """Return the character for a label value. Raises KeyError if absent."""
        return self._by_value[value]

    def value_for(self, char: str) -> int:
        """Return the label value for a character. Raises KeyError if absent."""
        return self._by_char[char]

    @property
    def has_onset(self) -> bool:
        return ONSET_VALUE in self._by_value

    @property
    def has_offset(self) -> bool:
        return OFFSET_VALUE in self._by_value

    def pruned(self, seen: Iterable[int]) -> "SymbolTable":
        """Return a table with only the values in `seen`, order and characters kept."""
        seen = set(seen)
        kept = [(v, c) for v, c in zip(self.values, self.chars) if v in seen]
        dropped = [v for v in self.values if v not in seen]
        if dropped:
            logger.debug(f"Pruned unused syllables: {dropped}")
        return SymbolTable([v for v, _ in kept], [c for _, c in kept])

    def to_dict(self) -> dict:
        """Serialize for JSON output."""
        return {
            "syllables": list(self.values),
            "symbols": list(self.chars),
        }


def discover_syllables(store) -> list[int]:
    """Sorted union of all label values across every file of the store."""
    labels: set[int] = set()
    for annotation in store.values():
        labels.update(int(v) for v in np.unique(annotation.labels))
    return sorted(labels)


def select_syllables(
    candidates: Iterable[int],
    ignore_entries: Iterable[int] = (),
    join_entries: Iterable[Iterable[int]] = (),
    include_zero: bool = False,
    keep_order: bool = False,
) -> list[int]:
    """Filter candidate labels down to the ones that get their own symbol.

    Removes ignored labels, label 0 unless include_zero, and every join-group
    member except the group's first (representative) label. Discovered sets
    come back sorted; with keep_order a caller-given list keeps its order,
    minus duplicates.
    """
    drop = set(ignore_entries)
    if not include_zero:
        drop.add(0)
    for group in join_entries:
        drop.update(list(group)[1:])
    kept = [s for s in dict.fromkeys(int(c) for c in candidates) if s not in drop]
    return kept if keep_order else sorted(kept)


def build_symbol_table(
    syllables: Iterable[int],
    onset_sym: str = "1",
    offset_sym: str = "2",
) -> SymbolTable:
    """Assign characters to syllable labels and enabled sentinels.

    Raises:
        ValueError: if there are more labels than available characters,
            or a label collides with a sentinel value.
    """
    syllables = list(syllables)
    values: list[int] = []
    chars: list[str] = []
    if onset_sym:
        values.append(ONSET_VALUE)
        chars.append(onset_sym)
    if offset_sym:
        values.append(OFFSET_VALUE)
        chars.append(offset_sym)

    reserved = set(values) & set(syllables)
    if reserved:
        raise ValueError(f"Syllable labels collide with sentinel values: {sorted(reserved)}")

    letters = [c for c in ALPHABET if c not in chars]
    if len(syllables) > len(letters):
        raise ValueError(
            f"{len(syllables)} syllables but only {len(letters)} symbols available"
        )
    values.extend(syllables)
    chars.extend(letters[:len(syllables)])
    logger.debug(f"Symbol table: {len(syllables)} syllables, sentinels {chars[:len(chars) - len(syllables)]}")
    return SymbolTable(values, chars)
