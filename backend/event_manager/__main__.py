"""Run the API with uvicorn: ``python -m event_manager``."""

import uvicorn

from event_manager.core.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "event_manager.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.ENVIRONMENT == "development" and settings.DEBUG,
        log_config=None,
    )


if __name__ == "__main__":
    main()
