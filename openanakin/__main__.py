"""Run the relay with uvicorn: ``python -m openanakin``."""

import uvicorn

from .config_loader import load_config
from .logging import logger
from .main import create_app
from .settings import ServerSettings


def main() -> None:
    config = load_config()
    server = ServerSettings.from_config(config)
    app = create_app(config)
    logger.info("Starting OpenAnakin relay on %s:%s", server.host, server.port)
    uvicorn.run(app, host=server.host, port=server.port, server_header=False)


if __name__ == "__main__":
    main()
