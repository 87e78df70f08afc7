"""Parallel matching of many candidate files.

Files are independent, so they are spread over a thread pool. Results come
back in completion order and are re-ordered to input order before return.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Sequence
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path

from shapegate.core.exceptions import ParseError
from shapegate.matching.engine import MatchEngine
from shapegate.matching.types import MatchResult

logger = logging.getLogger(__name__)


@dataclass
class BatchResult:
    """Results of a batch run.

    Attributes:
        results: One result per successfully extracted file, input order.
        failures: (path, error) for files that failed to extract.

    """

    results: list[MatchResult] = field(default_factory=list)
    failures: list[tuple[str, ParseError]] = field(default_factory=list)


def default_workers() -> int:
    """Return a worker count sized to the available cores."""
    return os.cpu_count() or 4


def match_files(
    engine: MatchEngine,
    paths: Sequence[str | Path],
    workers: int | None = None,
) -> BatchResult:
    """Match every file, skipping (and logging) files that fail to extract.

    Args:
        engine: Engine holding the pattern set.
        paths: Candidate files.
        workers: Thread count; defaults to the number of cores.

    Returns:
        BatchResult with results in input order.

    """
    batch = BatchResult()
    if not paths:
        return batch

    engine.warm_references()
    max_workers = max(1, min(len(paths), workers or default_workers()))

    ordered: dict[int, MatchResult] = {}
    failed: dict[int, tuple[str, ParseError]] = {}
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures: dict[Future[MatchResult], int] = {
            executor.submit(engine.match_file, path): idx for idx, path in enumerate(paths)
        }
        for future in as_completed(futures):
            idx = futures[future]
            try:
                ordered[idx] = future.result()
            except ParseError as e:
                logger.warning("Skipping %s: %s", paths[idx], e)
                failed[idx] = (str(paths[idx]), e)

    batch.results = [ordered[idx] for idx in sorted(ordered)]
    batch.failures = [failed[idx] for idx in sorted(failed)]
    return batch
