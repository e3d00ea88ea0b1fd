"""
Server entrypoint for the imagebot HTTP adapter.

Architectural role:
- Configures process logging from `LOG_LEVEL`.
- Serves `imagebot.api.http_api:app` with uvicorn.

Environment:
- `HOST` (default `0.0.0.0`), `PORT` (default `8000`), `LOG_LEVEL` (default `INFO`).
"""

import logging
import os


def main():
    """Run the HTTP server until interrupted."""
    import uvicorn

    log_level = os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    uvicorn.run(
        "imagebot.api.http_api:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
        log_level=log_level.lower(),
    )


if __name__ == "__main__":
    main()
