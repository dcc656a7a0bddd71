"""End-to-end demo of the FixedFloat client.

Shows:
1. Loading credentials from environment
2. Loading optional YAML configuration
3. Quoting a currency pair
4. Creating an order
5. Polling the order until it reaches a terminal status
6. Structured logging
"""
import asyncio
import sys
from pathlib import Path

# Add parent directory to path so we can import the fixedfloat package
sys.path.insert(0, str(Path(__file__).parent.parent))

from fixedfloat.async_client import AsyncFixedFloatClient
from fixedfloat.config import ClientConfig
from fixedfloat.errors import ConfigurationError, FixedFloatError
from fixedfloat.logging_setup import logger, setup_logging
from fixedfloat.secrets import load_credentials

POLL_SECONDS = 30


async def main(to_address: str, amount: str = "0.001"):
    config_file = Path(__file__).parent.parent / "config.yaml"
    config = ClientConfig.from_yaml(str(config_file)) if config_file.exists() else ClientConfig()

    setup_logging(log_file=config.logging.log_file, level=config.logging.log_level, enable_console=config.logging.enable_console)
    logger.info("=== FixedFloat Demo ===")

    try:
        creds = load_credentials()
    except ConfigurationError as e:
        logger.error(f"Failed to load credentials: {e}")
        logger.info("Set environment variables: FF_API_KEY, FF_API_SECRET")
        return

    async with AsyncFixedFloatClient.from_config(config, creds) as client:
        try:
            quote = await client.get_price("BTC", "ETH", amount)
            logger.info(f"Quote | {quote}")

            order = await client.create_order("BTC", "ETH", to_address, amount)
            logger.info(f"Send {order.from_leg.amount} {order.from_leg.ccy} to {order.address}")

            while not order.is_terminal:
                await asyncio.sleep(POLL_SECONDS)
                await order.refresh()
                logger.info(f"Order {order.id} status={order.status} remaining={order.remaining}")

            if order.status == "EMERGENCY":
                logger.warning("Order needs an emergency choice: use set_emergency('EXCHANGE') or set_emergency('REFUND', address)")
        except FixedFloatError as e:
            logger.error(f"Demo aborted: {e}")


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print("Usage: python examples/demo_exchange.py <eth_address> [amount]")
        sys.exit(1)
    asyncio.run(main(*sys.argv[1:3]))
