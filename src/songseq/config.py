"""Conversion settings and up-front validation."""

from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Sequence

from songseq.symbols import UNKNOWN_SYMBOL


class ConfigurationError(ValueError):
    """Raised for settings that make a conversion run meaningless."""


@dataclass(frozen=True)
class ConversionConfig:
    """Settings for one annotation-to-string conversion run."""
    ignore_dates: tuple = ()                    # dates or 'YYYY_MM_DD' strings
    ignore_entries: tuple[int, ...] = ()        # labels dropped everywhere
    join_entries: tuple[tuple[int, ...], ...] = ()  # groups collapsed onto their first label
    include_zero: bool = False
    min_phrases: int = 1
    onset_sym: str = "1"                        # "" disables the onset sentinel
    offset_sym: str = "2"                       # "" disables the offset sentinel
    syllables: tuple[int, ...] | None = None    # explicit label list, skips discovery
    max_sep: float = 0.5                        # max phrase gap within a bout (seconds)
    calc_brainard: Path | None = None           # WAV folder for Brainard-style features
    calc_tchernichovski: Path | None = None     # WAV folder for Tchernichovski-style features
    date_sep: str = "_"
    date_fields: tuple[int, ...] = (2, 3, 4)    # 0-based filename tokens: year, month, day
    date_format: str = "%Y_%m_%d"

    def __post_init__(self):
        # Lists become tuples
        object.__setattr__(self, "ignore_dates", tuple(self.ignore_dates))
        object.__setattr__(self, "ignore_entries", tuple(int(e) for e in self.ignore_entries))
        object.__setattr__(
            self, "join_entries",
            tuple(tuple(int(v) for v in group) for group in self.join_entries),
        )
        if self.syllables is not None:
            object.__setattr__(self, "syllables", tuple(int(s) for s in self.syllables))
        object.__setattr__(self, "date_fields", tuple(self.date_fields))
        for name in ("calc_brainard", "calc_tchernichovski"):
            value = getattr(self, name)
            if value is not None and value != "":
                object.__setattr__(self, name, Path(value))
            else:
                object.__setattr__(self, name, None)

        if self.min_phrases < 1:
            raise ConfigurationError(f"min_phrases must be >= 1, got {self.min_phrases}")
        if self.max_sep < 0:
            raise ConfigurationError(f"max_sep must be >= 0, got {self.max_sep}")
        for name in ("onset_sym", "offset_sym"):
            if len(getattr(self, name)) > 1:
                raise ConfigurationError(
                    f"{name} must be a single character or empty, got {getattr(self, name)!r}"
                )
            if getattr(self, name) == UNKNOWN_SYMBOL:
                raise ConfigurationError(
                    f"{name} cannot be {UNKNOWN_SYMBOL!r}, it marks unknown syllables"
                )
        if self.onset_sym and self.onset_sym == self.offset_sym:
            raise ConfigurationError(
                f"onset_sym and offset_sym must differ, both are {self.onset_sym!r}"
            )

    def with_overrides(self, **overrides) -> "ConversionConfig":
        """Return a copy with the given fields replaced.

        Raises:
            TypeError: for names that are not config fields.
        """
        known = {f.name for f in fields(self)}
        unknown = set(overrides) - known
        if unknown:
            raise TypeError(f"Unknown conversion option(s): {', '.join(sorted(unknown))}")
        return replace(self, **overrides)


def validate_groups(
    ignore_entries: Sequence[int],
    join_entries: Sequence[Sequence[int]],
) -> None:
    """Check that join groups are disjoint from each other and from the ignore list.

    Raises:
        ConfigurationError: if any two of the lists share a label.
    """
    ignored = set(ignore_entries)
    for i, group in enumerate(join_entries):
        if len(group) == 0:
            raise ConfigurationError("join groups must not be empty")
        shared = ignored & set(group)
        if shared:
            raise ConfigurationError(
                f"join group {list(group)} overlaps ignore list on {sorted(shared)}"
            )
        for other in join_entries[i + 1:]:
            shared = set(group) & set(other)
            if shared:
                raise ConfigurationError(
                    f"join groups {list(group)} and {list(other)} overlap on {sorted(shared)}"
                )
