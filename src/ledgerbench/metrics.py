import math
import logging
from .models import MetricsCallback, Stats

logger = logging.getLogger(__name__)


def _empty_stats(
    success_count: int, error_count: int, status_counts: dict[str, int]
) -> dict:
    total = success_count + error_count
    return {
        "total": total,
        "success": success_count,
        "errors": error_count,
        "mean": None,
        "std": None,
        "p50": None,
        "p90": None,
        "p95": None,
        "p99": None,
        "min": None,
        "max": None,
        "error_rate": error_count / total if total else 0.0,
        "status_counts": dict(status_counts),
        "throughput": None,
    }


def compute_stats(
    latencies: list[float],
    success_count: int,
    error_count: int,
    status_counts: dict[str, int],
    duration_s: float | None = None,
    metrics_callback: MetricsCallback | None = None,
) -> Stats:
    """Summarise finished transactions; ``latencies`` are in seconds."""
    total = success_count + error_count
    logger.debug(
        f"Computing stats: total={total}, success={success_count}, errors={error_count}"
    )

    stats_dict = _empty_stats(success_count, error_count, status_counts)
    if duration_s and duration_s > 0:
        stats_dict["throughput"] = total / duration_s

    n = len(latencies)
    if not total or n == 0:
        if total:
            logger.warning("No transaction latencies recorded.")
        else:
            logger.info("No transactions recorded. Returning empty stats.")
        if metrics_callback:
            metrics_callback(stats_dict)
        return Stats(**stats_dict)

    mean = sum(latencies) / n
    sum_sq = sum(x * x for x in latencies)
    std = math.sqrt(max(0.0, (sum_sq / n) - (mean * mean)))

    sl = sorted(latencies)

    def pct(p):
        return sl[max(0, min(n - 1, int(p * (n - 1))))]

    stats_dict.update(
        mean=mean,
        std=std,
        p50=pct(0.50),
        p90=pct(0.90),
        p95=pct(0.95),
        p99=pct(0.99),
        min=sl[0],
        max=sl[-1],
    )

    if metrics_callback:
        metrics_callback(stats_dict)

    logger.debug(
        f"Stats computed: success={success_count}, errors={error_count}, "
        f"mean={mean:.3f}s, p95={stats_dict['p95']:.3f}s, error_rate={stats_dict['error_rate'] * 100:.1f}%"
    )

    return Stats(**stats_dict)
