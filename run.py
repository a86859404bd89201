"""Entry point for the Reactivities API server.

Starts the FastAPI application with Uvicorn. It is intended to be
executed from the project root, for example under Docker, where you
only specify a single Python file to run.

Configuration such as SECRET_KEY, DATABASE_URL and CORS_ORIGINS is read
from environment variables (see ``reactivities_api/app/core/config.py``).

Usage:
    python run.py
"""
import os

from uvicorn import Config, Server

from reactivities_api.app.main import app


def main() -> None:
    """Start the API using Uvicorn.

    Host and port are read from environment variables `API_HOST` and
    `API_PORT`. Defaults are `0.0.0.0` and `8000`.
    """
    api_host = os.getenv("API_HOST", "0.0.0.0")
    api_port = int(os.getenv("API_PORT", "8000"))
    config = Config(app=app, host=api_host, port=api_port, reload=False, log_level="info")
    server = Server(config)
    server.run()


if __name__ == "__main__":
    try:
        main()
    except (KeyboardInterrupt, SystemExit):
        pass
