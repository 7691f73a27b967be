from __future__ import annotations

import argparse
import asyncio
import cProfile
import pstats
from collections.abc import Callable
from pathlib import Path

from scripts.bench import benchmark_json, benchmark_multipart, benchmark_sending

_TARGETS: dict[str, Callable[[int], object]] = {
    "json": benchmark_json,
    "multipart": benchmark_multipart,
    "send": lambda iterations: asyncio.run(benchmark_sending(iterations)),
}


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Profile message encoding and sending.")
    parser.add_argument("target", choices=sorted(_TARGETS), help="Code path to profile")
    parser.add_argument("--iterations", type=int, default=500, help="Iterations to run")
    parser.add_argument(
        "--output",
        type=Path,
        default=Path("profiles"),
        help="Directory that receives the .prof file",
    )
    parser.add_argument(
        "--top",
        type=int,
        default=15,
        help="Number of functions to print, sorted by cumulative time (0 disables)",
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    args.output.mkdir(parents=True, exist_ok=True)
    profile_path = args.output / f"{args.target}.prof"

    profiler = cProfile.Profile()
    profiler.runcall(_TARGETS[args.target], args.iterations)
    profiler.dump_stats(profile_path)
    print(f"Profile written to {profile_path}")

    if args.top > 0:
        pstats.Stats(profiler).sort_stats(pstats.SortKey.CUMULATIVE).print_stats(args.top)


if __name__ == "__main__":
    main()
