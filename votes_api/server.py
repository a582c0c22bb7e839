"""Console entry point: run the API under uvicorn."""
from __future__ import annotations

import uvicorn

from votes_api.core.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "votes_api.app:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
