"""
Run the Polarad Analytics API server
"""
import argparse

import uvicorn
from app.core.config import settings


def main():
    parser = argparse.ArgumentParser(description=f"Run {settings.APP_NAME}")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=8000)
    args = parser.parse_args()

    uvicorn.run(
        "app.main:app",
        host=args.host,
        port=args.port,
        reload=settings.DEBUG,
        log_level="debug" if settings.DEBUG else "info",
    )


if __name__ == "__main__":
    main()
