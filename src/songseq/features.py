"""Per-syllable acoustic feature extractors: interface, WAV loading, dispatch.

The extractors themselves live outside this package. Each is a callable

    extractor(samples, sr, segments) -> np.ndarray of shape (n_features, n_segments)

returning one column per segment, with rows in the documented order below.
The conversion only slices columns out of the returned matrix.
"""

import importlib
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Protocol

import numpy as np
import scipy.io.wavfile as wavfile

from songseq.types import FileAnnotation, Segment

logger = logging.getLogger(__name__)

# Brainard-style features, median over each syllable:
#   fundamental frequency (middle 80%, 8 ms windows, 2 ms step), time to
#   half-peak amplitude, mean FF slope over the central 80%, amplitude slope
#   (P2 - P1) / (P2 + P1) between syllable halves, and three entropies.
BRAINARD_FEATURES = (
    "fundamental_frequency",
    "time_to_half_peak",
    "frequency_slope",
    "amplitude_slope",
    "spectral_entropy",
    "temporal_entropy",
    "spectrotemporal_entropy",
)

# Tchernichovski (Sound Analysis Tools) features, resampled to 1 kHz and
# reduced to the median per syllable.
TCHERNICHOVSKI_FEATURES = (
    "goodness",
    "mean_frequency",
    "FM",
    "pow1",
    "peak1",
    "pow2",
    "peak2",
    "pow3",
    "peak3",
    "pow4",
    "peak4",
    "amplitude",
    "entropy",
    "pitch",
    "aperiodicity",
    "AM",
)

FEATURE_NAMES = {
    "brainard": BRAINARD_FEATURES,
    "tchernichovski": TCHERNICHOVSKI_FEATURES,
}


class FeatureExtractor(Protocol):
    def __call__(self, samples: np.ndarray, sr: int, segments: list[Segment]) -> np.ndarray:
        ...


WaveformLoader = Callable[[Path], tuple[np.ndarray, int]]


def read_wav(path: str | Path) -> tuple[np.ndarray, int]:
    """Default waveform loader for feature extraction: (samples, sample_rate).

    Song recordings are mono in practice. A multi-channel file is reduced
    to its first channel, which is the microphone the annotation times
    refer to, and no channel mixing is attempted. Integer PCM is scaled to
    float64 in [-1, 1] so extractors see the same amplitude range whatever
    the recorder's bit depth. Float WAVs pass through as float64.

    Raises:
        FileNotFoundError: if the file does not exist.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    sr, data = wavfile.read(str(path))

    if data.ndim > 1:
        data = data[:, 0]

    if np.issubdtype(data.dtype, np.integer):
        info = np.iinfo(data.dtype)
        samples = data.astype(np.float64) / max(abs(info.min), abs(info.max))
    else:
        samples = data.astype(np.float64)

    return samples, sr


@dataclass
class FeatureSource:
    """An enabled extractor bound to the folder holding its WAV files."""
    name: str
    folder: Path
    extractor: FeatureExtractor
    loader: WaveformLoader = read_wav

    @property
    def feature_names(self) -> tuple[str, ...]:
        return FEATURE_NAMES.get(self.name, ())

    def compute(self, file_name: str, annotation: FileAnnotation) -> np.ndarray:
        """Run the extractor on one file's (normalized) segments.

        Raises:
            ValueError: if the returned matrix does not have one column per
                segment, or the wrong number of rows for a known extractor.
        """
        samples, sr = self.loader(self.folder / file_name)
        segments = list(annotation.segments())
        matrix = np.asarray(self.extractor(samples, sr, segments), dtype=np.float64)
        if matrix.ndim != 2 or matrix.shape[1] != len(segments):
            raise ValueError(
                f"{self.name} extractor returned shape {matrix.shape} "
                f"for {len(segments)} segments of {file_name}"
            )
        expected = len(self.feature_names)
        if expected and matrix.shape[0] != expected:
            raise ValueError(
                f"{self.name} extractor returned {matrix.shape[0]} features, expected {expected}"
            )
        return matrix


def resolve_sources(
    folders: dict[str, Path | None],
    extractors: dict[str, FeatureExtractor] | None = None,
    loader: WaveformLoader = read_wav,
) -> list[FeatureSource]:
    """Build the list of enabled feature sources.

    A requested folder that does not exist disables that extractor; so does
    a folder requested without an extractor to run.
    """
    extractors = extractors or {}
    sources: list[FeatureSource] = []
    for name, folder in folders.items():
        if folder is None:
            continue
        folder = Path(folder)
        if not folder.is_dir():
            logger.info(f"WAV folder for {name} features not found, skipping: {folder}")
            continue
        extractor = extractors.get(name)
        if extractor is None:
            logger.warning(f"No {name} feature extractor supplied, skipping {name} features")
            continue
        sources.append(FeatureSource(name=name, folder=folder, extractor=extractor, loader=loader))
    return sources


def load_extractor(target: str) -> FeatureExtractor:
    """Import an extractor from a 'package.module:function' string.

    Raises:
        ValueError: if the string has no ':' separator.
        ImportError / AttributeError: if the target cannot be found.
    """
    module_name, sep, attr = target.partition(":")
    if not sep or not module_name or not attr:
        raise ValueError(f"Extractor must look like 'module:function', got {target!r}")
    module = importlib.import_module(module_name)
    extractor = getattr(module, attr)
    if not callable(extractor):
        raise TypeError(f"{target} is not callable")
    return extractor
