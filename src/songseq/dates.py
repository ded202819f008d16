"""Recording dates from file names, and gap-free day indices."""

from datetime import date, datetime
from typing import Iterable, Sequence


def date_from_filename(
    name: str,
    sep: str = "_",
    fields: Sequence[int] = (2, 3, 4),
    fmt: str = "%Y_%m_%d",
) -> date:
    """Parse the recording date embedded in a file name.

    The tokens at `fields` (0-based, after splitting on `sep`) are joined
    with "_" and parsed with `fmt`. For 'llb3_0012_2018_04_23_06_12_44.wav'
    the defaults give 2018-04-23.

    Raises:
        ValueError: if the name has too few tokens or the date does not parse.
    """
    tokens = name.split(sep)
    try:
        date_str = "_".join(tokens[i] for i in fields)
    except IndexError:
        raise ValueError(f"Cannot find date tokens {list(fields)} in file name {name!r}") from None
    try:
        return datetime.strptime(date_str, fmt).date()
    except ValueError:
        raise ValueError(f"Cannot parse date {date_str!r} from file name {name!r}") from None


def parse_date(value, fmt: str = "%Y_%m_%d") -> date:
    """Coerce a date, datetime, or date string into a date.

    Strings are tried with `fmt` first, then ISO format.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    try:
        return datetime.strptime(text, fmt).date()
    except ValueError:
        return date.fromisoformat(text)


def day_indices(dates: Iterable[date]) -> list[int]:
    """Rank each date among the sorted distinct dates, starting at 1.

    Calendar days with no entries are skipped, so consecutive distinct
    dates always differ by exactly one.
    """
    dates = list(dates)
    rank = {d: i for i, d in enumerate(sorted(set(dates)), start=1)}
    return [rank[d] for d in dates]
