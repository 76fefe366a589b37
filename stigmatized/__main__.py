"""Run the webhook server: ``python -m stigmatized``."""

import uvicorn

from stigmatized.config import get_settings
from stigmatized.logging_config import setup_logging


def main():
    settings = get_settings()
    setup_logging(settings.log_level)
    # Keep the JSON handlers; requests are logged by the app middleware
    uvicorn.run(
        "stigmatized.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        log_config=None,
        access_log=False,
    )


if __name__ == "__main__":
    main()
