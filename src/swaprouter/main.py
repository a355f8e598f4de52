"""Command-line entry point: serves the swap API with uvicorn."""

import logging

import uvicorn

from swaprouter.config import Settings, get_settings

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format=LOG_FORMAT,
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


def main() -> None:
    settings = get_settings()
    configure_logging(settings)

    logger.info(
        f"Starting swaprouter ({settings.environment}) on "
        f"{settings.api_host}:{settings.api_port}, dry_run={settings.dry_run}"
    )

    try:
        uvicorn.run(
            "swaprouter.api.app:create_app",
            factory=True,
            host=settings.api_host,
            port=settings.api_port,
            log_level="debug" if settings.debug else "info",
        )
    except KeyboardInterrupt:
        logger.info("Interrupted")
    logger.info("Shutdown complete")


if __name__ == "__main__":
    main()
