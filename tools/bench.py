# tools/bench.py
# Usage examples:
#   python3 -m tools.bench 10.0.0.1
#   python3 -m tools.bench 127.0.0.1 --rounds 50
#   python3 -m tools.bench fake
#
# Compares the in-process probe with spawning the system `ping -c 1`.

import argparse
import json
import logging
import shlex
import subprocess
import time

from pingprobe.ping import probe_sync


def _run_cmd(cmd: str) -> int:
    proc = subprocess.run(cmd, shell=True, check=False, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL)
    return proc.returncode


def _time_rounds(fn, rounds: int) -> dict:
    samples = []
    for _ in range(rounds):
        t0 = time.perf_counter()
        fn()
        samples.append((time.perf_counter() - t0) * 1000.0)
    total = sum(samples)
    return {
        "rounds": rounds,
        "total_ms": round(total, 3),
        "per_call_ms": round(total / rounds, 3) if rounds else None,
        "ops_per_s": round(rounds / (total / 1000.0), 1) if total else None,
    }


def run_with_fake(args):
    from pingprobe.prober.fake import fake_factory
    target = "127.0.0.1"
    res = {
        "probe (fake session)": _time_rounds(
            lambda: probe_sync(target, session_factory=fake_factory()), args.rounds),
    }
    print(json.dumps(res, indent=2))


def run_live(args):
    cmd = f"ping -c 1 {shlex.quote(args.target)}"
    res = {
        "probe (in-process)": _time_rounds(lambda: probe_sync(args.target), args.rounds),
        "ping (system process)": _time_rounds(lambda: _run_cmd(cmd), args.rounds),
    }
    print(json.dumps(res, indent=2))


def build_argparser():
    ap = argparse.ArgumentParser(description="Single-probe benchmark")
    ap.add_argument("target", nargs="?", help="Destination host/IP (or 'fake' to use FakeSession)")
    ap.add_argument("--rounds", type=int, default=20, help="Calls per contender")
    ap.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    return ap


if __name__ == "__main__":
    ap = build_argparser()
    args = ap.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG)

    if args.target == "fake":
        run_with_fake(args)
    elif not args.target:
        ap.error("Provide a target (e.g., 10.0.0.1) or 'fake'")
    else:
        run_live(args)
