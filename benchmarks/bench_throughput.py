"""Benchmark: serdyn encode and decode throughput.

Measures how many complete encode and decode passes over a sample order
can run per second using the public serdyn.encode() / serdyn.decode() APIs.
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

_ITERATIONS: int = 2_000


def _report(operation: str, iterations: int, total: float) -> dict[str, object]:
    result: dict[str, object] = {
        "operation": operation,
        "iterations": iterations,
        "total_seconds": round(total, 4),
        "ops_per_second": round(iterations / total, 1),
        "avg_latency_ms": round(total / iterations * 1000, 4),
    }
    print(
        f"[bench_throughput] {result['operation']}: "
        f"{result['ops_per_second']:,.0f} ops/sec  "
        f"avg {result['avg_latency_ms']:.4f} ms"
    )
    return result


def bench_encode_throughput() -> dict[str, object]:
    """Benchmark encoding a sample order into builtin objects.

    Returns
    -------
    dict with keys: operation, iterations, total_seconds, ops_per_second,
    avg_latency_ms.
    """
    order = sample_order()
    with serdyn.NativeHost().acquire() as ctx:
        start = time.perf_counter()
        for _ in range(_ITERATIONS):
            serdyn.encode(ctx, order, Order)
        total = time.perf_counter() - start
    return _report("serdyn_encode_throughput", _ITERATIONS, total)


def bench_decode_throughput() -> dict[str, object]:
    """Benchmark decoding builtin objects back into a sample order.

    Returns
    -------
    dict with keys: operation, iterations, total_seconds, ops_per_second,
    avg_latency_ms.
    """
    with serdyn.NativeHost().acquire() as ctx:
        obj = serdyn.encode(ctx, sample_order(), Order)
        start = time.perf_counter()
        for _ in range(_ITERATIONS):
            serdyn.decode(ctx, obj, Order)
        total = time.perf_counter() - start
    return _report("serdyn_decode_throughput", _ITERATIONS, total)


if __name__ == "__main__":
    results_dir = Path(__file__).parent / "results"
    results_dir.mkdir(exist_ok=True)

    for bench_fn, fname in [
        (bench_encode_throughput, "encode_throughput_baseline.json"),
        (bench_decode_throughput, "decode_throughput_baseline.json"),
    ]:
        result = bench_fn()
        output_path = results_dir / fname
        with open(output_path, "w", encoding="utf-8") as fh:
            json.dump(result, fh, indent=2)
        print(f"Results saved to {output_path}")
