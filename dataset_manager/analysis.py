"""
Parallel application of an analysis function to trials.

Each trial is analysed independently. Results are stored by position, so the
output list lines up with the input trials regardless of completion order.
A failing analysis is logged and replaced by an empty SegmentResult.
A KeyboardInterrupt stops dispatching new trials; analyses already running
finish and every completed result is kept.
"""

import logging
import os
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import Any, Callable, Dict, List, Optional, Sequence

from tqdm import tqdm

from .results.segment import SegmentResult
from .trials.models import Trial

logger = logging.getLogger(__name__)


AnalysisFunc = Callable[..., Any]


def _run_one(func: AnalysisFunc, trial: Trial, kwargs: Dict[str, Any]) -> Any:
    try:
        return func(trial, **kwargs)
    except Exception:
        logger.exception("Analysis failed for %r", trial)
        return SegmentResult.empty(trial)


def analyze_trials(
    func: AnalysisFunc,
    trials: Sequence[Trial],
    *,
    max_workers: Optional[int] = None,
    progress: bool = True,
    **kwargs,
) -> List[Optional[Any]]:
    """
    Apply `func(trial, **kwargs)` to every trial in parallel.

    Args:
        func: Analysis function, normally returning a SegmentResult
        trials: Trials to analyse
        max_workers: Worker threads (default: os.cpu_count())
        progress: Show a progress bar
        **kwargs: Passed on to `func`

    Returns:
        One result per trial, in trial order. Failed analyses give
        SegmentResult.empty(trial); trials never started because of an
        interrupt give None.
    """
    n = len(trials)
    results: List[Optional[Any]] = [None] * n
    if n == 0:
        return results

    max_workers = max_workers or os.cpu_count() or 1
    pending: Dict[Future, int] = {}
    queue = iter(range(n))
    interrupted = False

    pbar = tqdm(total=n, desc="Analyzing trials", unit="trial", disable=not progress)
    try:
        with ThreadPoolExecutor(max_workers=max_workers) as executor:

            def dispatch() -> bool:
                i = next(queue, None)
                if i is None:
                    return False
                pending[executor.submit(_run_one, func, trials[i], kwargs)] = i
                return True

            while True:
                try:
                    while not interrupted and len(pending) < max_workers and dispatch():
                        pass
                    if not pending:
                        break
                    done, _ = wait(list(pending), return_when=FIRST_COMPLETED)
                    for future in done:
                        # Store before forgetting the future so an interrupt cannot drop a result
                        results[pending[future]] = future.result()
                        del pending[future]
                        pbar.update(1)
                except KeyboardInterrupt:
                    if not interrupted:
                        logger.warning(
                            "Interrupted; waiting for %d running analyses to finish", len(pending)
                        )
                    interrupted = True
    finally:
        pbar.close()
    if interrupted:
        skipped = sum(1 for r in results if r is None)
        logger.warning("Analysis interrupted; %d of %d trials were not analysed", skipped, n)
    return results
