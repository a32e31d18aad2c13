"""
Server entry point for the Complexity Analyzer API.
"""
import uvicorn

from complexity_api.config import settings, logger


def main():
    """Run the server."""
    logger.info("Starting Complexity Analyzer on %s:%d", settings.HOST, settings.PORT)

    uvicorn.run(
        "complexity_api.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
