"""Apply one market variation to every stock, once or on a fixed interval.

    python run_market_simulation.py              # single run
    python run_market_simulation.py --interval   # every MARKET_SIMULATION_INTERVAL_SECONDS
"""

import argparse
import asyncio
import logging

from config.settings import settings
from src.ob_common.database import engine, open_session
from src.ob_common.errors import AppError
from src.ob_market.application.service import MarketService

logger = logging.getLogger("run_market_simulation")


async def run_once(service: MarketService) -> None:
    async with open_session() as db:
        result = await service.simulate_market_variation(db)
    for update in result.updates:
        logger.info(
            "%s: %d -> %d (%s%%)",
            update.symbol, update.old_price_cents, update.new_price_cents, update.variation,
        )


async def main(interval: bool) -> None:
    service = MarketService()
    try:
        while True:
            try:
                await run_once(service)
            except AppError as exc:
                if not interval:
                    raise
                logger.warning("Simulation round failed (code=%d): %s", exc.code, exc.message)
            if not interval:
                break
            await asyncio.sleep(settings.MARKET_SIMULATION_INTERVAL_SECONDS)
    finally:
        await engine.dispose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument(
        "--interval",
        action="store_true",
        help="keep running every MARKET_SIMULATION_INTERVAL_SECONDS",
    )
    args = parser.parse_args()
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    asyncio.run(main(args.interval))
