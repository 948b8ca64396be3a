"""Application entry point for the client portal security backend."""

from clientportal.app import App
from clientportal.config import Config
from clientportal.logging import setup_logging
from clientportal.web.runner import run_server


def main() -> None:
    config = Config()
    setup_logging(config.debug)
    app = App(config)
    run_server(app, config)


if __name__ == "__main__":
    main()
