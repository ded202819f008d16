"""Convert an annotation store into bout strings for sequence modeling."""

import logging
from dataclasses import replace
from datetime import date
from pathlib import Path

import numpy as np

from songseq.annotations import load_annotations
from songseq.bouts import bouts_for_file, seen_labels
from songseq.config import ConfigurationError, ConversionConfig, validate_groups
from songseq.dates import date_from_filename, day_indices, parse_date
from songseq.features import FeatureExtractor, FeatureSource, WaveformLoader, read_wav, resolve_sources
from songseq.labels import normalize_labels
from songseq.phrases import PhraseFinder, find_phrases
from songseq.symbols import (
    SymbolTable,
    build_symbol_table,
    discover_syllables,
    select_syllables,
)
from songseq.types import AnnotationStore, Bout, ConversionResult, FileAnnotation

logger = logging.getLogger(__name__)


def _symbol_table(config: ConversionConfig, store: AnnotationStore) -> SymbolTable:
    explicit = config.syllables is not None
    syllables = select_syllables(
        config.syllables if explicit else discover_syllables(store),
        ignore_entries=config.ignore_entries,
        join_entries=config.join_entries,
        include_zero=config.include_zero,
        keep_order=explicit,
    )
    try:
        return build_symbol_table(syllables, config.onset_sym, config.offset_sym)
    except ValueError as e:
        raise ConfigurationError(str(e)) from e


def _file_features(
    sources: list[FeatureSource],
    file_name: str,
    annotation: FileAnnotation,
) -> dict[str, np.ndarray]:
    return {source.name: source.compute(file_name, annotation) for source in sources}


def _process_file(
    file_name: str,
    annotation: FileAnnotation,
    file_number: int,
    file_date: date,
    table: SymbolTable,
    config: ConversionConfig,
    sources: list[FeatureSource],
    phrase_finder: PhraseFinder,
    warnings: list[str],
) -> list[Bout]:
    """Run one file through normalization, features and segmentation."""
    annotation = normalize_labels(annotation, config.ignore_entries, config.join_entries)
    phrases = phrase_finder(annotation)
    features = _file_features(sources, file_name, annotation)
    return bouts_for_file(
        annotation,
        phrases,
        table,
        max_sep=config.max_sep,
        min_phrases=config.min_phrases,
        file_number=file_number,
        file_date=file_date,
        onset_sym=config.onset_sym,
        offset_sym=config.offset_sym,
        features=features,
        warnings=warnings,
    )


def convert(
    annotations: str | Path | AnnotationStore,
    config: ConversionConfig | None = None,
    *,
    extractors: dict[str, FeatureExtractor] | None = None,
    phrase_finder: PhraseFinder = find_phrases,
    loader: WaveformLoader = read_wav,
    **overrides,
) -> ConversionResult:
    """Run the full annotation-to-bout-string conversion.

    Args:
        annotations: Path to a .mat/.json annotation file, or an already
            loaded store (ordered mapping of file name -> FileAnnotation).
        config: Conversion settings; keyword overrides are applied on top
            (e.g. ``convert(path, min_phrases=2, max_sep=0.3)``).
        extractors: Feature extractors keyed by "brainard" / "tchernichovski",
            used for the folders named in ``config.calc_brainard`` and
            ``config.calc_tchernichovski``.
        phrase_finder: Maps a normalized file annotation to its phrases.
        loader: Reads a WAV file into (samples, sample_rate) for extractors.

    Returns:
        ConversionResult with one Bout per accepted bout, in file order.
        Configuration problems and an unreadable annotation store produce an
        empty result; failures inside a single file drop only that file.
    """
    config = (config or ConversionConfig()).with_overrides(**overrides)

    if isinstance(annotations, (str, Path)):
        try:
            store = load_annotations(annotations)
        except (OSError, ValueError) as e:
            logger.error(f"Could not open annotation file: {annotations} ({e})")
            return ConversionResult.empty()
    else:
        store = annotations

    try:
        validate_groups(config.ignore_entries, config.join_entries)
    except ConfigurationError as e:
        logger.error(f"join or ignore lists overlap: {e}")
        return ConversionResult.empty()

    try:
        ignore_dates = {parse_date(d, config.date_format) for d in config.ignore_dates}
        table = _symbol_table(config, store)
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        return ConversionResult.empty()

    sources = resolve_sources(
        {"brainard": config.calc_brainard, "tchernichovski": config.calc_tchernichovski},
        extractors,
        loader=loader,
    )

    bouts: list[Bout] = []
    warnings: list[str] = []
    for file_number, (file_name, annotation) in enumerate(store.items(), start=1):
        try:
            file_date = date_from_filename(
                file_name, config.date_sep, config.date_fields, config.date_format,
            )
        except ValueError as e:
            message = f"Skipping {file_name}: {e}"
            logger.warning(message)
            warnings.append(message)
            continue
        if file_date in ignore_dates:
            logger.debug(f"Skipping {file_name}: date {file_date} is ignored")
            continue

        file_warnings: list[str] = []
        try:
            file_bouts = _process_file(
                file_name, annotation, file_number, file_date,
                table, config, sources, phrase_finder, file_warnings,
            )
        except Exception as e:
            message = f"Skipping {file_name}: {type(e).__name__}: {e}"
            logger.warning(message)
            logger.debug("File processing failed", exc_info=True)
            warnings.extend(file_warnings)
            warnings.append(message)
            continue
        warnings.extend(file_warnings)
        bouts.extend(file_bouts)
        logger.debug(f"{file_name}: {len(file_bouts)} bout(s)")

    indices = day_indices(b.file_date for b in bouts)
    bouts = [replace(b, day_index=i) for b, i in zip(bouts, indices)]
    table = table.pruned(seen_labels(bouts))

    logger.info(
        f"Converted {len(store)} file(s): {len(bouts)} bout(s), "
        f"{len(table)} symbol(s), {len(set(indices))} day(s)"
    )
    return ConversionResult(bouts=bouts, symbol_table=table, warnings=warnings)
