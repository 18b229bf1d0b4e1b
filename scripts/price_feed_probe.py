# flake8: noqa E402
# Run via uv so project deps are loaded, e.g.:
# uv run scripts/price_feed_probe.py ETH-USD BTC-USD --market coinbase
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

# Ensure the src directory is importable when the script is invoked via uv/python directly.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from domain.base_types import FeedId
from services.coindesk_feed import CoinDeskPriceFeed
from services.price_types import PriceFeedError


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Fetch the readings the vault would see from live CoinDesk feeds.")
    parser.add_argument("feeds", nargs="+", help="Feed ids (CoinDesk instruments), e.g. ETH-USD.")
    parser.add_argument(
        "--market",
        default="coinbase",
        help="Exchange market identifier as per CoinDesk API (default: coinbase).",
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    feed = CoinDeskPriceFeed(market=args.market)

    payload: dict[str, Any] = {}
    for feed_id in args.feeds:
        try:
            reading = feed.latest_price(FeedId(feed_id))
        except PriceFeedError as exc:
            payload[feed_id] = {"error": str(exc)}
            continue
        payload[feed_id] = {
            "price": reading.price,
            "updated_at": reading.updated_at.isoformat() if reading.updated_at else None,
        }
    print(json.dumps(payload, indent=2))


if __name__ == "__main__":
    main()
