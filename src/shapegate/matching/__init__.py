"""Matching: candidate fingerprints against learned patterns."""

from shapegate.matching.batch import BatchResult, match_files
from shapegate.matching.engine import Comparison, MatchEngine, should_try_pattern
from shapegate.matching.similarity import cosine_similarity
from shapegate.matching.types import Deviation, MatchResult

__all__ = [
    "BatchResult",
    "Comparison",
    "Deviation",
    "MatchEngine",
    "MatchResult",
    "cosine_similarity",
    "match_files",
    "should_try_pattern",
]
