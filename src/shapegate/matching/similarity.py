"""Histogram similarity."""

from __future__ import annotations

import math
from collections.abc import Mapping


def cosine_similarity(a: Mapping[str, int], b: Mapping[str, int]) -> float:
    """Cosine similarity of two node-kind histograms.

    Each distinct key across both histograms is one dimension. Returns 0.0
    when either vector has zero magnitude. Counts are non-negative, so the
    result always lies in [0, 1].
    """
    keys = set(a) | set(b)
    dot = 0.0
    norm_a = 0.0
    norm_b = 0.0
    for key in keys:
        x = float(a.get(key, 0))
        y = float(b.get(key, 0))
        dot += x * y
        norm_a += x * x
        norm_b += y * y

    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0

    if a == b:
        return 1.0

    similarity = dot / (math.sqrt(norm_a) * math.sqrt(norm_b))
    return min(1.0, max(0.0, similarity))
