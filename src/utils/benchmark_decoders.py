# benchmark_decoders.py
import time
import argparse
from typing import Dict, Tuple

from src.bussines_logic.controller import parse_log_file


def run_scanner(file_path: str) -> Tuple[Dict[str, int], float]:
    """Scan the log and count extracted messages per type name."""
    t0 = time.perf_counter()
    result = parse_log_file(file_path)
    elapsed = time.perf_counter() - t0
    return result.counts_by_name(), elapsed


def run_pymavlink(file_path: str) -> Tuple[Dict[str, int], float]:
    """Count messages per type name with pymavlink's DataFlash reader."""
    from pymavlink import mavutil

    t0 = time.perf_counter()
    counts: Dict[str, int] = {}
    connection = mavutil.mavlink_connection(file_path)
    while True:
        msg = connection.recv_match(blocking=False)
        if msg is None:
            break
        msg_type = msg.get_type()
        counts[msg_type] = counts.get(msg_type, 0) + 1
    elapsed = time.perf_counter() - t0
    return counts, elapsed

# ============================================================
# Report helpers
# ============================================================

def _pct_speedup(baseline: float, value: float) -> float:
    if baseline <= 0:
        return 0.0
    return (baseline - value) / baseline * 100.0


def main():
    ap = argparse.ArgumentParser(description="Benchmark the BIN scanner against pymavlink.")
    ap.add_argument("file", help="Path to .BIN log file")
    ap.add_argument("--top", type=int, default=15, help="Number of message types to list")
    args = ap.parse_args()

    print("Scanner ...")
    ours, our_time = run_scanner(args.file)
    print(f"   -> messages={sum(ours.values()):,} | time={our_time:.2f}s")

    print("pymavlink ...")
    theirs, their_time = run_pymavlink(args.file)
    print(f"   -> messages={sum(theirs.values()):,} | time={their_time:.2f}s")

    pct = _pct_speedup(their_time, our_time)
    print(f"\nScanner is {abs(pct):.2f}% {'faster' if pct > 0 else 'slower'} than pymavlink")

    print(f"\n{'type':>6} {'scanner':>10} {'pymavlink':>10}")
    busiest = sorted(theirs, key=theirs.get, reverse=True)[: args.top]
    for name in busiest:
        print(f"{name:>6} {ours.get(name, 0):>10,} {theirs[name]:>10,}")


if __name__ == "__main__":
    main()
