"""Run records and output normalization.

Every renderer reads one OutputDocument. The normalizer picks the best
available output from a run record, parses raw LLM text and upgrades v1
planning documents to the v2 layout.
"""

from .schemas import ContextQuality, OutputDocument, RunRecord, ValidationResult
from .normalizer import coerce_run, normalize

__all__ = [
    "ContextQuality",
    "OutputDocument",
    "RunRecord",
    "ValidationResult",
    "coerce_run",
    "normalize",
]
