"""CLI entrypoint for songseq: subcommand dispatcher."""

import argparse
import logging
import sys
from pathlib import Path


def _parse_group(s: str) -> tuple[int, ...]:
    """Parse a join group like '5,6,7' into (5, 6, 7)."""
    try:
        return tuple(int(v) for v in s.split(",") if v.strip())
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid join group: {s!r}") from None


def _add_shared_args(parser: argparse.ArgumentParser) -> None:
    """Add arguments shared between subcommands."""
    parser.add_argument("annotation_file", type=Path,
                        help="Annotation store (.mat or .json)")
    parser.add_argument("-v", "--verbose", action="store_true", default=False,
                        help="Log per-file and per-bout detail")


def _add_convert_args(parser: argparse.ArgumentParser) -> None:
    """Add arguments specific to the convert subcommand."""
    parser.add_argument("--output", type=Path, default=None,
                        help="Write the full result as JSON to this path")
    parser.add_argument("--strings-output", type=Path, default=None,
                        help="Write one bout string per line to this path")

    # Label handling
    parser.add_argument("--ignore-dates", nargs="*", default=[],
                        help="Recording dates to skip, e.g. 2018_04_23")
    parser.add_argument("--ignore-entries", nargs="*", type=int, default=[],
                        help="Syllable labels to drop")
    parser.add_argument("--join", dest="join_entries", action="append",
                        type=_parse_group, default=[],
                        help="Labels to merge onto the first one, e.g. 5,6,7 (repeatable)")
    parser.add_argument("--include-zero", action=argparse.BooleanOptionalAction, default=False,
                        help="Treat label 0 as a syllable (default: disabled)")
    parser.add_argument("--syllables", nargs="*", type=int, default=None,
                        help="Explicit syllable label list instead of discovering from data")

    # Bout grouping
    parser.add_argument("--min-phrases", type=int, default=1,
                        help="Minimum phrases per bout (default: 1)")
    parser.add_argument("--max-sep", type=float, default=0.5,
                        help="Max gap between phrases within a bout, seconds (default: 0.5)")
    parser.add_argument("--onset-sym", default="1",
                        help="Bout onset symbol, '' to disable (default: 1)")
    parser.add_argument("--offset-sym", default="2",
                        help="Bout offset symbol, '' to disable (default: 2)")

    # File name dates
    parser.add_argument("--date-sep", default="_",
                        help="File name token separator (default: _)")
    parser.add_argument("--date-fields", nargs=3, type=int, default=[2, 3, 4],
                        metavar=("YEAR", "MONTH", "DAY"),
                        help="0-based token positions of the date (default: 2 3 4)")

    # Acoustic features
    parser.add_argument("--calc-brainard", type=Path, default=None,
                        help="WAV folder for Brainard-style features")
    parser.add_argument("--brainard-extractor", default=None,
                        help="Brainard extractor as module:function")
    parser.add_argument("--calc-tchernichovski", type=Path, default=None,
                        help="WAV folder for Tchernichovski-style features")
    parser.add_argument("--tchernichovski-extractor", default=None,
                        help="Tchernichovski extractor as module:function")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments with subcommands."""
    parser = argparse.ArgumentParser(
        prog="songseq",
        description="Convert bird-song annotations into bout strings",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    convert_parser = subparsers.add_parser(
        "convert",
        help="Convert annotations into bout strings",
        description="Group annotated syllables into bouts and encode them as strings",
    )
    _add_shared_args(convert_parser)
    _add_convert_args(convert_parser)

    labels_parser = subparsers.add_parser(
        "labels",
        help="Count segments per label",
        description="List every label in an annotation store with its segment count",
    )
    _add_shared_args(labels_parser)
    labels_parser.add_argument("--dump-json", type=Path, default=None,
                               help="Also write the store as JSON to this path")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    return args


def _check_input(path: Path) -> None:
    if not path.exists():
        print(f"Error: file not found: {path}", file=sys.stderr)
        sys.exit(1)


def _run_convert(args: argparse.Namespace) -> None:
    """Run the conversion pipeline."""
    from songseq.config import ConfigurationError, ConversionConfig
    from songseq.export import write_result, write_strings
    from songseq.features import load_extractor
    from songseq.pipeline import convert

    _check_input(args.annotation_file)

    extractors = {}
    for name, target in (("brainard", args.brainard_extractor),
                       ("tchernichovski", args.tchernichovski_extractor)):
        if target:
            try:
                extractors[name] = load_extractor(target)
            except (ImportError, AttributeError, TypeError, ValueError) as e:
                print(f"Error: cannot load {name} extractor {target!r}: {e}", file=sys.stderr)
                sys.exit(1)

    try:
        config = ConversionConfig(
            ignore_dates=args.ignore_dates,
            ignore_entries=args.ignore_entries,
            join_entries=args.join_entries,
            include_zero=args.include_zero,
            min_phrases=args.min_phrases,
            onset_sym=args.onset_sym,
            offset_sym=args.offset_sym,
            syllables=args.syllables,
            max_sep=args.max_sep,
            calc_brainard=args.calc_brainard,
            calc_tchernichovski=args.calc_tchernichovski,
            date_sep=args.date_sep,
            date_fields=args.date_fields,
        )
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    result = convert(args.annotation_file, config, extractors=extractors)

    print(f"Bouts: {len(result.bouts)}")
    print(f"Days: {len(set(result.day_indices))}")
    print("Symbols:")
    for value, char in zip(result.syllables, result.symbols):
        print(f"  {char}  {value}")
    if result.warnings:
        print(f"Warnings: {len(result.warnings)}")

    if args.output is not None:
        write_result(result, args.output)
        print(f"Output: {args.output}")
    if args.strings_output is not None:
        write_strings(result, args.strings_output)
        print(f"Strings: {args.strings_output}")
    if args.output is None and args.strings_output is None:
        for s in result.strings:
            print(s)


def _run_labels(args: argparse.Namespace) -> None:
    """Print segment counts per label."""
    from songseq.annotations import label_counts, load_annotations
    from songseq.export import write_store

    _check_input(args.annotation_file)
    try:
        store = load_annotations(args.annotation_file)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    counts = label_counts(store)
    print(f"Files: {len(store)}")
    for label in sorted(counts):
        print(f"  {label:>6}  {counts[label]}")

    if args.dump_json is not None:
        write_store(store, args.dump_json)
        print(f"Store: {args.dump_json}")


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint."""
    args = parse_args(argv)

    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(level=level, format="%(name)s %(levelname)s: %(message)s")

    if args.command == "convert":
        _run_convert(args)
    elif args.command == "labels":
        _run_labels(args)


if __name__ == "__main__":
    main()
