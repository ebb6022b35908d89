#!/usr/bin/env python3
"""Quote a swap against a pool snapshot file and print the result as JSON."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Optional, Sequence

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from curve_quote.core.quote import quote_exact_in, quote_exact_out, resolve_current_point
from curve_quote.errors import CurveQuoteError
from curve_quote.state.snapshot import load_snapshot


def _parse_direction(value: str) -> bool:
    if value == "base-to-quote":
        return True
    if value == "quote-to-base":
        return False
    raise argparse.ArgumentTypeError("direction must be base-to-quote or quote-to-base")


def main(argv: Optional[Sequence[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="Offline bonding-curve swap quote")
    ap.add_argument("snapshot", type=str, help="YAML/JSON file with `config` and `pool` sections")
    ap.add_argument("--direction", type=_parse_direction, default=False, help="base-to-quote | quote-to-base")
    ap.add_argument("--amount", type=int, required=True)
    ap.add_argument("--exact-out", action="store_true", help="treat --amount as the desired output")
    ap.add_argument("--referral", action="store_true")
    ap.add_argument("--slot", type=int, default=0)
    ap.add_argument("--timestamp", type=int, default=0)
    ap.add_argument("--log-level", type=str, default="WARNING")
    args = ap.parse_args(argv)

    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")

    try:
        config, state = load_snapshot(args.snapshot)
        current_point = resolve_current_point(config, args.timestamp, args.slot)
        quote_fn = quote_exact_out if args.exact_out else quote_exact_in
        result = quote_fn(state, config, args.direction, args.amount, args.referral, current_point)
    except CurveQuoteError as exc:
        print(json.dumps({"ok": False, "error": exc.code, "message": str(exc)}))
        return 1

    print(json.dumps({"ok": True, "quote": asdict(result)}, sort_keys=True))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
