"""Source adapters that produce raw records."""

from .base import BaseExtractor, ExtractionResult, unwrap_records
from .api_extractor import RestExtractor
from .file_extractor import FileExtractor, StaticExtractor

__all__ = [
    "BaseExtractor",
    "ExtractionResult",
    "unwrap_records",
    "RestExtractor",
    "FileExtractor",
    "StaticExtractor",
]
