"""
Server entry point.

    python -m apptrack.main
    uvicorn apptrack.main:app --port 8080
"""

import uvicorn

from apptrack.core.app import create_app
from apptrack.core.config.settings import settings

app = create_app()


def main(host: str = "0.0.0.0", port: int | None = None) -> None:
    """Run the API with uvicorn on settings.port unless a port is given."""
    uvicorn.run(
        app,
        host=host,
        port=port or settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
