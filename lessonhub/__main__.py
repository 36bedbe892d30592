"""
Run the API server: python -m lessonhub
"""

import uvicorn

from lessonhub.api.app import create_app
from lessonhub.config import get_settings


def main():
    """Main entry point."""
    settings = get_settings()
    uvicorn.run(create_app(settings), host=settings.api_host, port=settings.api_port)


if __name__ == "__main__":
    main()
