"""songseq: bird-song annotations to bout strings for sequence modeling."""

from songseq.config import ConfigurationError, ConversionConfig
from songseq.pipeline import convert
from songseq.types import Bout, ConversionResult, FileAnnotation, Phrase, Segment

__all__ = [
    "Bout",
    "ConfigurationError",
    "ConversionConfig",
    "ConversionResult",
    "FileAnnotation",
    "Phrase",
    "Segment",
    "convert",
]
