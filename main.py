# Tidewatch - Multi-model forecast consensus for a single point.
# Fetches every model, aligns them hour by hour and prints how much they agree.

from __future__ import annotations

import argparse
import asyncio
import json
import logging
from typing import List, Optional

from dotenv import load_dotenv

from collector import fetch_multi_model_data
from config import load_fetch_settings_from_env
from core.models import MultiModelData
from synthesizer.confidence import format_confidence_line


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Score hourly agreement between forecast models for a point")
    parser.add_argument("--lat", type=float, required=True, help="Latitude")
    parser.add_argument("--lon", type=float, required=True, help="Longitude")
    parser.add_argument("--hours", type=int, default=48, help="Hours to print (0 = all)")
    parser.add_argument("--json", action="store_true", help="Dump the full result as JSON")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser


def render_report(data: MultiModelData, hours: int = 48) -> List[str]:
    scores = data.confidence if hours <= 0 else data.confidence[:hours]
    lines = [f"Fetched {data.fetched_at:%Y-%m-%d %H:%M}Z  |  {len(data.models)} weather, {len(data.wave_models)} wave models"]
    if not scores:
        lines.append("No forecast hours available.")
        return lines
    lines.extend(format_confidence_line(score) for score in scores)
    return lines


async def _main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )

    data = await fetch_multi_model_data(args.lat, args.lon, load_fetch_settings_from_env())

    if args.json:
        print(json.dumps(data.to_dict(), indent=2))
    else:
        for line in render_report(data, args.hours):
            print(line)
    return 0 if data.normalized else 1


def cli() -> int:
    return asyncio.run(_main())


if __name__ == "__main__":
    raise SystemExit(cli())
