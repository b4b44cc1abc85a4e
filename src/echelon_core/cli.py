#!/usr/bin/env python3
"""
Echelon CLI entry point.

Usage examples:
  - Run one simulation in-process and print the JSON result:
      echelon-sim run --idea "Specialty coffee kiosk" --region "Lisbon"

  - Reproducible run written to a file:
      echelon-sim run --idea "Bike repair" --region "Utrecht" --duration 12 --seed 7 --output result.json

  - Start the HTTP API:
      echelon-sim serve --port 8000
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional

from echelon_core.advisory import AdvisoryGateway
from echelon_core.config import get_settings
from echelon_core.errors import SimulationValidationError
from echelon_core.logging import configure_logging
from echelon_core.simulation import SimulationEngine, SimulationParams

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    description = (
        "Echelon: month-by-month market simulation of a business idea.\n\n"
        "Examples:\n"
        "  echelon-sim run --idea 'Vegan bakery' --region 'Austin, TX'\n"
        "  echelon-sim serve\n"
    )
    parser = argparse.ArgumentParser(
        prog="echelon-sim",
        description=description,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command")

    p_run = subparsers.add_parser("run", help="Run one simulation in-process and emit the result as JSON.")
    p_run.add_argument("--idea", required=True, help="Business idea to evaluate.")
    p_run.add_argument("--region", required=True, help="Target region.")
    p_run.add_argument("--population", type=float, default=None, help="Addressable population.")
    p_run.add_argument("--sentiment", type=float, default=None, help="Market sentiment in [0, 1].")
    p_run.add_argument("--duration", type=int, default=None, help="Simulated months.")
    p_run.add_argument("--seed", type=int, default=None, help="Seed for the monthly variance draws.")
    p_run.add_argument("--output", type=Path, default=None, help="Write the JSON result here instead of stdout.")

    p_serve = subparsers.add_parser("serve", help="Start the HTTP API with uvicorn.")
    p_serve.add_argument("--host", default=None, help="Bind address (defaults to settings).")
    p_serve.add_argument("--port", type=int, default=None, help="Port (defaults to settings).")

    return parser


async def _run_simulation(params: SimulationParams) -> Dict[str, Any]:
    settings = get_settings()
    gateway = AdvisoryGateway.from_settings(settings)
    try:
        engine = SimulationEngine(params, gateway, settings=settings)
        result = await engine.run(on_progress=lambda p: logger.info("Progress: %d%%", p))
    finally:
        await gateway.aclose()
    return result.to_dict()


def handle_run(args: argparse.Namespace) -> int:
    payload = {
        "idea": args.idea,
        "region": args.region,
        "population": args.population,
        "sentiment": args.sentiment,
        "duration": args.duration,
        "seed": args.seed,
    }
    try:
        params = SimulationParams.from_payload(payload, get_settings().simulation)
    except SimulationValidationError as e:
        logger.error("%s", e)
        return 2

    result = asyncio.run(_run_simulation(params))
    text = json.dumps(result, indent=2)
    if args.output:
        args.output.write_text(text, encoding="utf-8")
        logger.info("Result written to %s", args.output)
    else:
        print(text)
    return 0


def handle_serve(args: argparse.Namespace) -> int:
    from echelon_api.main import run

    run(host=args.host, port=args.port)
    return 0


def main(argv: Optional[list] = None) -> int:
    """
    Entry point for the CLI.
    """
    configure_logging(get_settings())
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "run":
        return handle_run(args)
    elif args.command == "serve":
        return handle_serve(args)
    else:
        parser.print_help(sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
