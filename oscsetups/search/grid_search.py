"""
Exhaustive grid search over stochastic configurations.

For every (k_length, k_smoothing, d_length) in the search ranges the
indicator is computed, crossovers are simulated and the trades are
aggregated. Configurations the bar series is too short for are skipped.
Results are ordered ascending by net profit so the best configuration
comes last.
"""
import logging
import math
import multiprocessing
import signal
from concurrent.futures import FIRST_COMPLETED, ProcessPoolExecutor, wait
from dataclasses import dataclass, replace
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from ..evaluation.pnl import PnL, aggregate
from ..evaluation.simulator import SimulatorConfig, TradeSimulator
from ..indicators.stochastic import compute_with_seed
from ..shared.defaults import SEARCH_CANCEL_POLL_S, SEARCH_CHUNKS_PER_WORKER
from ..shared.errors import InsufficientDataError, SearchCancelledError
from ..shared.types import Bar, BarSeries
from .config import PnLParams, SearchRanges

logger = logging.getLogger(__name__)

__all__ = ["SearchResult", "evaluate", "search"]


@dataclass(frozen=True)
class SearchResult:
    """One evaluated configuration."""
    params: PnLParams
    pnl: PnL

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary (flat: parameters first, then PnL fields)."""
        result: Dict[str, Any] = {
            "k_length": self.params.k_length,
            "k_smoothing": self.params.k_smoothing,
            "d_length": self.params.d_length,
        }
        result.update(self.pnl.to_dict())
        return result


def _as_series(bars: Union[BarSeries, Sequence[Bar]]) -> BarSeries:
    return bars if isinstance(bars, BarSeries) else BarSeries(tuple(bars))


def _evaluate_with(simulator: TradeSimulator, bars: BarSeries, params: PnLParams) -> PnL:
    seed, points = compute_with_seed(bars, params.to_config())
    trades = simulator.simulate(bars, points, seed=seed)
    return aggregate(
        trades,
        bars.first_close,
        bars.last_close,
        with_commission=simulator.config.exchange_fee is not None,
    )


def evaluate(
    bars: Union[BarSeries, Sequence[Bar]],
    params: PnLParams,
    config: Optional[SimulatorConfig] = None,
) -> PnL:
    """
    Evaluate a single configuration on a bar series.

    Raises:
        InsufficientDataError: If the series is shorter than the
            configuration's warm-up
    """
    bars = _as_series(bars)
    return _evaluate_with(TradeSimulator(config), bars, params)


def _init_worker() -> None:
    # Ctrl-C reaches the whole process group; workers stop through the shared event
    signal.signal(signal.SIGINT, signal.SIG_IGN)


def _evaluate_chunk(args: tuple) -> Tuple[int, List[SearchResult]]:
    """
    Worker function for parallel search: evaluates every configuration of one chunk.

    This is a module-level function so it can be pickled for ProcessPoolExecutor.

    Args:
        args: Tuple of (chunk_index, bars, params_list, simulator_config, stop).
            stop is a shared event (or None) checked before each configuration

    Returns:
        Tuple of (chunk_index, results in enumeration order)
    """
    chunk_index, bars, params_list, sim_config, stop = args
    simulator = TradeSimulator(sim_config)
    results: List[SearchResult] = []
    for params in params_list:
        if stop is not None and stop.is_set():
            break
        try:
            results.append(SearchResult(params, _evaluate_with(simulator, bars, params)))
        except InsufficientDataError:
            continue
    return chunk_index, results


def _rank(results: List[SearchResult], top_n: Optional[int]) -> List[SearchResult]:
    """Stable ascending sort by net profit; ties keep enumeration order."""
    ranked = sorted(results, key=lambda r: r.pnl.net_profit)
    if top_n is not None and len(ranked) > top_n:
        ranked = ranked[-top_n:]
    return ranked


def _chunks(params: List[PnLParams], workers: int) -> List[List[PnLParams]]:
    """Split the enumeration into consecutive chunks, several per worker."""
    size = max(1, math.ceil(len(params) / (workers * SEARCH_CHUNKS_PER_WORKER)))
    return [params[i:i + size] for i in range(0, len(params), size)]


def search(
    bars: Union[BarSeries, Sequence[Bar]],
    ranges: SearchRanges,
    exchange_fee: Optional[float] = None,
    min_qty: Optional[float] = None,
    min_price: Optional[float] = None,
    *,
    config: Optional[SimulatorConfig] = None,
    top_n: Optional[int] = None,
    max_workers: Optional[int] = None,
    cancel_event: Any = None,
) -> List[SearchResult]:
    """
    Evaluate every configuration in `ranges` and rank them by net profit.

    Args:
        bars: Bar series to evaluate on (oldest first)
        ranges: Inclusive search ranges
        exchange_fee: Fee per side, overrides config.exchange_fee
        min_qty: Minimum quantity, overrides config.min_qty
        min_price: Minimum price, overrides config.min_price
        config: Base simulation settings (default: SimulatorConfig())
        top_n: Keep only the top_n most profitable results
        max_workers: Parallel worker processes (default: cpu_count); 1 = in-process
        cancel_event: Object with is_set() (e.g. threading.Event) checked
            before every configuration

    Returns:
        Results ascending by net profit; the most profitable is last

    Raises:
        SearchCancelledError: If cancel_event was set; carries the results
            collected so far, ranked the same way
    """
    bars = _as_series(bars)
    sim_config = config or SimulatorConfig()
    overrides = {
        name: value
        for name, value in (
            ("exchange_fee", exchange_fee),
            ("min_qty", min_qty),
            ("min_price", min_price),
        )
        if value is not None
    }
    if overrides:
        sim_config = replace(sim_config, **overrides)

    if max_workers is None:
        max_workers = max(1, multiprocessing.cpu_count() or 1)

    total = ranges.size
    logger.info(
        "Searching %d configurations (k_length %s, k_smoothing %s, d_length %s) on %d bars",
        total, ranges.k_length, ranges.k_smoothing, ranges.d_length, len(bars),
    )

    if max_workers == 1 or total == 1:
        results = _search_in_process(bars, ranges, sim_config, top_n, cancel_event)
    else:
        chunks = _chunks(list(ranges.iter_params()), max_workers)
        results = _search_parallel(bars, chunks, sim_config, top_n, max_workers, cancel_event)

    skipped = total - len(results)
    if skipped:
        logger.info("Skipped %d configurations with insufficient data", skipped)
    return _rank(results, top_n)


def _search_in_process(
    bars: BarSeries,
    ranges: SearchRanges,
    sim_config: SimulatorConfig,
    top_n: Optional[int],
    cancel_event: Any,
) -> List[SearchResult]:
    simulator = TradeSimulator(sim_config)
    results: List[SearchResult] = []
    for params in ranges.iter_params():
        if cancel_event is not None and cancel_event.is_set():
            logger.info("Search cancelled after %d results", len(results))
            raise SearchCancelledError(_rank(results, top_n))
        try:
            pnl = _evaluate_with(simulator, bars, params)
        except InsufficientDataError as e:
            logger.debug("Skipping %s: %s", params, e)
            continue
        results.append(SearchResult(params, pnl))
    return results


def _search_parallel(
    bars: BarSeries,
    chunks: List[List[PnLParams]],
    sim_config: SimulatorConfig,
    top_n: Optional[int],
    max_workers: int,
    cancel_event: Any,
) -> List[SearchResult]:
    workers = min(max_workers, len(chunks))
    logger.info("Running %d chunks with %d parallel workers", len(chunks), workers)

    by_chunk: Dict[int, List[SearchResult]] = {}

    def collected() -> List[SearchResult]:
        # Reassemble in enumeration order so ties rank as in-process
        return [r for index in sorted(by_chunk) for r in by_chunk[index]]

    def is_cancelled() -> bool:
        return cancel_event is not None and cancel_event.is_set()

    # Workers cannot see a threading.Event; mirror it into a managed one
    manager = multiprocessing.Manager() if cancel_event is not None else None
    try:
        stop = manager.Event() if manager is not None else None
        with ProcessPoolExecutor(max_workers=workers, initializer=_init_worker) as executor:
            cancelled = False
            pending = set()
            for index, chunk in enumerate(chunks):
                if is_cancelled():
                    cancelled = True
                    break
                pending.add(executor.submit(_evaluate_chunk, (index, bars, chunk, sim_config, stop)))

            while pending and not cancelled:
                done, pending = wait(pending, timeout=SEARCH_CANCEL_POLL_S, return_when=FIRST_COMPLETED)
                for future in done:
                    index, chunk_results = future.result()
                    by_chunk[index] = chunk_results
                    logger.debug("Chunk %d done (%d/%d)", index, len(by_chunk), len(chunks))
                cancelled = bool(pending) and is_cancelled()

            if cancelled:
                # Running chunks return what they evaluated before the stop
                stop.set()
                for future in pending:
                    future.cancel()
                for future in pending:
                    if not future.cancelled():
                        index, chunk_results = future.result()
                        by_chunk[index] = chunk_results
                partial = collected()
                logger.info("Search cancelled after %d results", len(partial))
                raise SearchCancelledError(_rank(partial, top_n))
    finally:
        if manager is not None:
            manager.shutdown()

    return collected()
