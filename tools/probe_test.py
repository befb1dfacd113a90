# tools/probe_test.py
# Usage: python3 -m tools.probe_test 8.8.8.8 [--verbose]
import argparse
import json
import logging
import sys

from pingprobe.errors import PingError
from pingprobe.ping import probe_sync


def main():
    ap = argparse.ArgumentParser(description="Send one ICMP echo request")
    ap.add_argument("target", help="Destination host/IP")
    ap.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    args = ap.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(asctime)s %(name)s %(message)s")

    try:
        res = probe_sync(args.target)
    except PingError as e:
        print(json.dumps({"host": args.target, "error": str(e)}, indent=2))
        sys.exit(1)
    print(json.dumps(res.as_dict(), indent=2))


if __name__ == "__main__":
    main()
