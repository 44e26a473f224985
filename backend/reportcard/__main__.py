"""Main entry point for the FastAPI application."""

import argparse
import os

import uvicorn
from dotenv import load_dotenv

from reportcard import create_app


def main() -> None:
    """Run the FastAPI application using Uvicorn."""
    parser = argparse.ArgumentParser(
        description="Run the report card directory API.",
    )
    parser.add_argument(
        "--env-file",
        type=str,
        default=".env",
        help="Path to the environment configuration file.",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port to run the API on.",
    )
    parser.add_argument(
        "--host",
        type=str,
        default="127.0.0.1",
        help="Host to run the API on.",
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable auto-reload for development.",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=1,
        help="Number of worker processes to run.",
    )
    args = parser.parse_args()

    if args.workers > 1:
        load_dotenv(dotenv_path=args.env_file)
        # a generated key would differ in every worker process
        if not os.getenv("SECRET_KEY"):
            parser.error("--workers above 1 requires SECRET_KEY to be set")

    if args.reload or args.workers > 1:
        # uvicorn needs an import string to reload or fork workers
        os.environ["ENV_FILE"] = args.env_file
        uvicorn.run(
            "reportcard.app:create_app",
            factory=True,
            host=args.host,
            port=args.port,
            reload=args.reload,
            workers=args.workers,
        )
        return

    uvicorn.run(create_app(args.env_file), host=args.host, port=args.port)


if __name__ == "__main__":
    main()
