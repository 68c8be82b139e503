"""Run the loadoutd daemon with `python -m loadoutd`.

Listen address, worker count and log level all come from loadout.yaml
and LOADOUT_* environment variables.
"""

import logging
import sys

import uvicorn

from loadout_library.config import LoadoutSettings
from loadout_library.config import load_config

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def run_daemon(config: LoadoutSettings) -> None:
    logging.basicConfig(level=config.log_level.upper(), format=LOG_FORMAT)
    logger.info(f"Starting loadoutd on {config.host}:{config.port} with {config.workers} worker(s)")
    uvicorn.run(
        "loadoutd.main:app",
        host=config.host,
        port=config.port,
        log_level=config.log_level.lower(),
        workers=config.workers,
    )


def main() -> None:
    try:
        run_daemon(load_config())
    except KeyboardInterrupt:
        logger.info("Received interrupt, shutting down")
        sys.exit(0)
    except Exception as e:
        logger.error(f"Failed to start daemon: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
