"""CLI entry point for GitStack."""

import logging


def main() -> None:
    """Serve the GitStack web UI and API."""
    from dotenv import load_dotenv

    load_dotenv()  # Load .env file (e.g. GITHUB_CLIENT_ID)

    import uvicorn

    from gitstack.app import create_app
    from gitstack.config import Settings

    settings = Settings.from_env()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = create_app(settings)
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
