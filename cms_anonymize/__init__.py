"""CMS Anonymizer package."""

__version__ = "1.0.0"
__description__ = "Replace the personal data of CMS users and comments with fake data"

from cms_anonymize.models import (
    AnnotationRunOptions, GenerationContext, ProfileRunOptions, RunResult,
)
from cms_anonymize.processors import AnonymizationEngine
from cms_anonymize.config import ConfigManager

__all__ = [
    'AnnotationRunOptions',
    'GenerationContext',
    'ProfileRunOptions',
    'RunResult',
    'AnonymizationEngine',
    'ConfigManager',
]
