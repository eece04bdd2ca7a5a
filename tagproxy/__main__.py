"""Run the proxy: ``python -m tagproxy``."""

import logging

import uvicorn

from .config_loader import load_config
from .main import create_app, resolve_server_address

logger = logging.getLogger("tagproxy")


def main() -> None:
    config = load_config()
    app = create_app(config)
    host, port = resolve_server_address(config)
    logger.info(f"tagproxy listening on http://{host}:{port}")
    uvicorn.run(app, host=host, port=port, log_level="info")


if __name__ == "__main__":
    main()
