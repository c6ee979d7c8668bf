"""Run the webhook server with uvicorn: ``python -m gitmirror``."""

import uvicorn

from gitmirror.config import settings


def main() -> None:
    uvicorn.run(
        "gitmirror.main:app",
        host=settings.host,
        port=settings.port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
