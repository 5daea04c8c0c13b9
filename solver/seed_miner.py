from __future__ import annotations

import argparse
import json
import os
import time
from concurrent.futures import ProcessPoolExecutor, ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Callable, Optional

from solver.analyzer import STATUS_EXHAUSTED, STATUS_SOLVED, SearchLimits, SearchPolicy, analyze_seed


def _default_workers() -> int:
    return max(1, (os.cpu_count() or 1) - 1)


def _analyze_one(seed: int, limits: SearchLimits, policy: SearchPolicy) -> dict:
    t0 = time.perf_counter()
    result = analyze_seed(seed=seed, limits=limits, policy=policy)
    payload = result.to_dict()
    payload["wall_ms"] = round((time.perf_counter() - t0) * 1000.0, 3)
    return payload


def mine_seeds(
    seeds: list[int],
    limits: SearchLimits,
    policy: SearchPolicy = SearchPolicy(),
    workers: int = 1,
    target_solved: int = 0,
    on_payload: Optional[Callable[[dict], None]] = None,
) -> dict:
    """
    Analyze `seeds`, calling `on_payload` for every finished seed.
    Stops early once `target_solved` seeds are solved (0 scans everything).
    Parallel runs report seeds in completion order.
    """
    counts = {"scanned": 0, "solved": 0, "exhausted": 0, "unknown": 0}

    def record(payload: dict) -> bool:
        counts["scanned"] += 1
        if payload["status"] == STATUS_SOLVED:
            counts["solved"] += 1
        elif payload["status"] == STATUS_EXHAUSTED:
            counts["exhausted"] += 1
        else:
            counts["unknown"] += 1
        if on_payload is not None:
            on_payload(payload)
        return target_solved > 0 and counts["solved"] >= target_solved

    if workers <= 1:
        for seed in seeds:
            if record(_analyze_one(seed, limits, policy)):
                break
        return counts

    def run_pool(exe) -> None:
        futures = [exe.submit(_analyze_one, seed, limits, policy) for seed in seeds]
        for fut in as_completed(futures):
            if record(fut.result()):
                for pending in futures:
                    pending.cancel()
                break

    # Only pool creation may fall back; seeds already recorded are never rerun.
    try:
        pool = ProcessPoolExecutor(max_workers=workers)
    except PermissionError:
        print("process pool unavailable in current environment; fallback to thread pool")
        pool = ThreadPoolExecutor(max_workers=workers)

    with pool as exe:
        run_pool(exe)
    return counts


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Batch seed mining for the SHENZHEN solitaire solver.")
    parser.add_argument("--start-seed", type=int, required=True, help="Start seed (inclusive).")
    parser.add_argument("--count", type=int, required=True, help="How many seeds to scan.")
    parser.add_argument("--max-seconds", type=float, default=10.0, help="Per-seed solver time limit.")
    parser.add_argument("--max-nodes", type=int, default=2_000_000, help="Per-seed node limit.")
    parser.add_argument("--max-frontier", type=int, default=1_000_000, help="Per-seed frontier limit.")
    parser.add_argument("--auto-margin", type=int, default=1, help="Auto-promotion margin.")
    parser.add_argument(
        "--reuse-dragon-cell", action="store_true", help="Let a dragon group land in a free cell one of its dragons occupies."
    )
    parser.add_argument("--target-solved", type=int, default=0, help="Stop early after this many solved seeds.")
    parser.add_argument("--workers", type=int, default=1, help=f"Worker processes (this machine: {_default_workers()}).")
    parser.add_argument("--jsonl", type=str, default="", help="Optional output jsonl path.")
    return parser.parse_args(argv)


def main(argv=None) -> None:
    args = parse_args(argv)
    limits = SearchLimits(max_nodes=args.max_nodes, max_seconds=args.max_seconds, max_frontier=args.max_frontier)
    policy = SearchPolicy(auto_promote_margin=args.auto_margin, reuse_dragon_cell=args.reuse_dragon_cell)

    out_path = Path(args.jsonl).expanduser() if args.jsonl else None
    if out_path is not None:
        out_path.parent.mkdir(parents=True, exist_ok=True)

    started = time.perf_counter()
    seeds = [args.start_seed + i for i in range(args.count)]

    def on_payload(payload: dict) -> None:
        if out_path is not None:
            with out_path.open("a", encoding="utf-8") as f:
                f.write(json.dumps(payload, ensure_ascii=False) + "\n")
        metrics = payload["metrics"]
        print(
            f"seed={payload['seed']} status={payload['status']} reason={metrics.get('reason')} "
            f"wall_ms={payload['wall_ms']:.1f} solver_ms={metrics['elapsed_ms']} "
            f"expanded={metrics['expanded_nodes']} unique={metrics['unique_states']} "
            f"moves={metrics.get('solution_len')}"
        )

    counts = mine_seeds(
        seeds,
        limits=limits,
        policy=policy,
        workers=args.workers,
        target_solved=args.target_solved,
        on_payload=on_payload,
    )

    total_ms = (time.perf_counter() - started) * 1000.0
    print(
        f"summary scanned={counts['scanned']} solved={counts['solved']} "
        f"exhausted={counts['exhausted']} unknown={counts['unknown']} total_ms={total_ms:.1f}"
    )


if __name__ == "__main__":
    main()
