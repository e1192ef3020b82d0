"""
Kazama smoke check.

Lists the server's models and sends one chat message, with configuration
from environment variables. Exits non-zero if any call fails.
"""

import asyncio
import logging
import os
import sys

from kazama import AsyncClient, ClientConfig, KazamaError

# Configure logging
log_level = os.environ.get("KAZAMA_LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, log_level, logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)]
)
logger = logging.getLogger("kazama")


async def run(config: ClientConfig, model: str, prompt: str) -> None:
    async with AsyncClient(config=config) as client:
        models = await client.list_models()
        logger.info(f"{len(models)} model(s) available: {', '.join(models.names) or '-'}")

        reply = await client.chat_completion(model, prompt)
        logger.info(f"{model} replied: {reply.content}")


def main():
    """Main entry point."""
    config = ClientConfig.from_env()
    model = os.environ.get("KAZAMA_MODEL", "gemma:2b")
    prompt = os.environ.get("KAZAMA_PROMPT", "why is the moon white")

    logger.info(f"Server: {config.base_url} (timeout: {config.timeout}s)")

    try:
        asyncio.run(run(config, model, prompt))
    except KazamaError as e:
        logger.error(f"{e.kind}: {e.message}")
        sys.exit(1)


if __name__ == "__main__":
    main()
