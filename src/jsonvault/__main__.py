"""jsonvault entrypoint.

Run with:
  python -m jsonvault
"""

import sys

import uvicorn
from dotenv import load_dotenv

from jsonvault.config import Settings
from jsonvault.core.errors import ConfigError
from jsonvault.log import setup_logging


def main() -> None:
    load_dotenv()
    try:
        settings = Settings.from_env()
    except ConfigError as e:
        sys.exit(f"Configuration error: {e}")
    setup_logging(settings.log_level)

    from jsonvault.app import create_app

    uvicorn.run(create_app(settings), host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
