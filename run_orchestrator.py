#!/usr/bin/env python3
"""
Orchestrator launcher - runs one query through analyze -> plan -> execute
and prints the combined result as JSON.
"""
import argparse
import asyncio
import json
import logging
import sys

from orchestrator.config import settings
from orchestrator.engine import Orchestrator, create_registry

logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


async def main(query: str) -> int:
    registry = create_registry(settings)
    orchestrator = Orchestrator(registry, config=settings)
    response = await orchestrator.handle(query)
    print(json.dumps(response, indent=2, ensure_ascii=False, default=str))
    return 0 if response["result"]["success"] else 1


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Run a query through the tool orchestrator")
    parser.add_argument("query", help="free-text request, e.g. 'Extract data from sales.csv and create a bar chart'")
    args = parser.parse_args()

    logger.info(f"Python {sys.version.split()[0]}, query={args.query!r}")
    sys.exit(asyncio.run(main(args.query)))
