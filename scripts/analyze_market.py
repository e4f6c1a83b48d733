"""Analyze a saved payload or a live symbol and print the metrics JSON."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
import sys

sys.path.append(str(Path(__file__).resolve().parents[1] / "src"))

from market_analyzer.advisor import MarketAdvisor
from market_analyzer.config import settings
from market_analyzer.decision import calculate_market_metrics, compute
from market_analyzer.ingest import fetch_market_data
from market_analyzer.utils.time import utc_now_ms


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Futures market bias analysis.")
    parser.add_argument(
        "--input",
        default="",
        help="JSON file with {snapshot, history}; fetches live data when omitted.",
    )
    parser.add_argument(
        "--symbol",
        default=settings.default_symbol,
        help="Symbol for live analysis, e.g. BTCUSDT",
    )
    parser.add_argument(
        "--advise",
        action="store_true",
        help="Attach the LLM advisory insight.",
    )
    parser.add_argument("--log-level", default="WARNING", help="Logging level.")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.input:
        payload = json.loads(Path(args.input).read_text(encoding="utf-8"))
        metrics = calculate_market_metrics(payload)
    else:
        metrics = compute(fetch_market_data(args.symbol)).to_dict(utc_now_ms())

    if args.advise:
        metrics["aiInsight"] = MarketAdvisor().get_insight(metrics)

    decision = metrics["finalDecision"]
    print(json.dumps(metrics, indent=2, ensure_ascii=True))
    print(f"Decision: {decision['bias']} ({decision['confidence']}/10)", file=sys.stderr)


if __name__ == "__main__":
    main()
