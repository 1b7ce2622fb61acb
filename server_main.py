"""Server entry point for the component log receiver."""

import logging

from component_logger.config import load_server_config
from component_logger.server import create_app


def main():
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    logger = logging.getLogger(__name__)

    config = load_server_config()
    app = create_app(config)
    logger.info("Starting component log receiver on %s:%d", config.host, config.port)
    app.run(host=config.host, port=config.port, debug=config.debug)


if __name__ == "__main__":
    main()
