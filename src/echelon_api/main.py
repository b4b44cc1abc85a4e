from typing import Optional

import uvicorn

from echelon_core.config import get_settings

from echelon_api.server.app_factory import create_app

# Expose app at module level for tests and ASGI servers
app = create_app()


def run(host: Optional[str] = None, port: Optional[int] = None):
    """Creates and runs the FastAPI application."""
    settings = get_settings()
    uvicorn.run(
        "echelon_api.main:app",
        host=host or settings.api.host,
        port=int(port or settings.api.port),
        reload=settings.api.reload,
    )


if __name__ == "__main__":
    run()
