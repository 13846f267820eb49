"""Benchmark: serdyn round-trip latency (p50/p95/mean).

Measures per-call latency of encode followed by decode for a small order.
"""
from __future__ import annotations

import json
import sys
import time
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
sys.path.insert(0, str(Path(__file__).parent))

import serdyn
from sample_models import Order, sample_order

_WARMUP: int = 100
_ITERATIONS: int = 3_000


def bench_roundtrip_latency() -> dict[str, object]:
    """Benchmark encode+decode latency on a three-item order.

    Returns
    -------
    dict with keys: operation, iterations, total_seconds, ops_per_second,
    avg_latency_ms, p50_ms, p95_ms.
    """
    order = sample_order(item_count=3)
    latencies_ms: list[float] = []
    with serdyn.NativeHost().acquire() as ctx:
        for _ in range(_WARMUP):
            serdyn.decode(ctx, serdyn.encode(ctx, order, Order), Order)

        for _ in range(_ITERATIONS):
            t0 = time.perf_counter()
            serdyn.decode(ctx, serdyn.encode(ctx, order, Order), Order)
            latencies_ms.append((time.perf_counter() - t0) * 1000)

    sorted_lats = sorted(latencies_ms)
    n = len(sorted_lats)
    total = sum(latencies_ms) / 1000

    result: dict[str, object] = {
        "operation": "serdyn_roundtrip_latency_small",
        "iterations": _ITERATIONS,
        "total_seconds": round(total, 4),
        "ops_per_second": round(_ITERATIONS / total, 1),
        "avg_latency_ms": round(sum(latencies_ms) / n, 4),
        "p50_ms": round(sorted_lats[int(n * 0.50)], 4),
        "p95_ms": round(sorted_lats[min(int(n * 0.95), n - 1)], 4),
    }
    print(
        f"[bench_latency] {result['operation']}: "
        f"p50={result['p50_ms']:.4f}ms  p95={result['p95_ms']:.4f}ms  "
        f"mean={result['avg_latency_ms']:.4f}ms"
    )
    return result


if __name__ == "__main__":
    result = bench_roundtrip_latency()
    results_dir = Path(__file__).parent / "results"
    results_dir.mkdir(exist_ok=True)
    output_path = results_dir / "latency_baseline.json"
    with open(output_path, "w", encoding="utf-8") as fh:
        json.dump(result, fh, indent=2)
    print(f"Results saved to {output_path}")
