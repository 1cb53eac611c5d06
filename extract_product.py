#!/usr/bin/env python3
"""CLI script to extract product data from an e-commerce URL."""

import argparse
import json
import logging
import os
import sys
from dataclasses import replace

from dotenv import load_dotenv

from price_checker import ExtractorConfig, InvalidURLError, ProductExtractor


def main():
    """Extract product data for one or more URLs and print JSON."""
    load_dotenv()

    parser = argparse.ArgumentParser(
        description="Extract title, price, brand and availability from product URLs"
    )
    parser.add_argument("urls", nargs="+", help="Product page URL(s)")
    parser.add_argument(
        "--deadline",
        type=float,
        default=None,
        help="Overall time budget per URL in seconds",
    )
    parser.add_argument(
        "--no-mirror",
        action="store_true",
        help="Skip the text-mirror fallback",
    )
    parser.add_argument(
        "--no-ai",
        action="store_true",
        help="Skip the AI completion fallback",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=4,
        help="Concurrent extractions when several URLs are given",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    config = ExtractorConfig.from_env()
    if args.no_mirror:
        config = replace(config, mirror_enabled=False)
    if args.no_ai:
        config = replace(config, ai_enabled=False)

    extractor = ProductExtractor(config=config)

    try:
        if len(args.urls) == 1:
            payloads = [extractor.extract(args.urls[0], deadline=args.deadline)]
        else:
            payloads = extractor.extract_many(args.urls, max_workers=args.workers, deadline=args.deadline)
    except InvalidURLError as e:
        print(f"❌ {e}", file=sys.stderr)
        sys.exit(1)

    result = [p.to_dict() for p in payloads]
    print(json.dumps(result[0] if len(result) == 1 else result, indent=2, ensure_ascii=False))
    sys.exit(0)


if __name__ == "__main__":
    main()
