"""Family vault API entry point."""

import uvicorn

from ..config.logging_config import LoggingConfig
from ..config.settings import get_settings

logger = LoggingConfig.get_logger(__name__)


def main() -> None:
    """Run the application."""
    settings = get_settings()
    LoggingConfig.configure()
    logger.info(f"Starting family vault API on {settings.host}:{settings.port}")

    uvicorn.run(
        "family_vault.api.app:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level="debug" if settings.debug else "info",
        access_log=True,
    )


if __name__ == "__main__":
    main()
