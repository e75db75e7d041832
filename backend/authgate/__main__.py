"""
Run the AuthGate server with uvicorn.

Usage:
    python -m authgate
"""

import os

import uvicorn

from authgate.config import get_settings
from authgate.logging_config import setup_logging
from authgate.main import create_app


def main() -> None:
    settings = get_settings()
    setup_logging(settings.LOG_LEVEL)
    uvicorn.run(
        create_app(settings),
        host=os.environ.get("AUTHGATE_HOST", "0.0.0.0"),
        port=int(os.environ.get("AUTHGATE_PORT", "8000")),
        log_config=None,
    )


if __name__ == "__main__":
    main()
