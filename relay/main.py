import logging

import uvicorn

from .app import create_app
from .config import Settings

logger = logging.getLogger('relay')

LOG_FORMAT = '%(asctime)s %(levelname)s [%(name)s] %(message)s'


def configure_logging(level: str) -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT)


def main() -> None:
    settings = Settings()
    configure_logging(settings.log_level)

    application = create_app(settings)

    logger.info('Listening on port %d', settings.port)
    logger.info('Routes: %s', ', '.join(application.state.router.prefixes))
    logger.info('Auth %s', 'enabled' if settings.auth_enabled else 'disabled')

    uvicorn.run(
        application,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        log_config=None,
    )


if __name__ == '__main__':
    main()
