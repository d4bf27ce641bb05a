# Load .env file BEFORE reading settings (so env vars are available)
from dotenv import load_dotenv
load_dotenv()

import argparse

import uvicorn

from rssreader.config import Settings
from rssreader.feeds import split_urls
from rssreader.logging_utils import log_event
from rssreader.main import create_app
from rssreader.service import build_service


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="rss-reader", description="Browser RSS/Atom reader")
    p.add_argument("--host", default=None, help="Interface to bind (env RSS_HOST, default 0.0.0.0)")
    p.add_argument("--port", type=int, default=None, help="HTTP server port (env RSS_PORT, default 8080)")
    p.add_argument("--data", default=None, help="Directory to store data files (env RSS_DATA_DIR, default data)")
    p.add_argument("--feeds", default=None, help="Comma-separated list of default feed URLs, added when no feeds are stored")
    p.add_argument("--no-autosave", action="store_true", help="Only save on shutdown")
    return p


def settings_from_args(args: argparse.Namespace) -> Settings:
    settings = Settings.from_env()
    if args.host is not None:
        settings.host = args.host
    if args.port is not None:
        settings.port = args.port
    if args.data is not None:
        settings.data_dir = args.data
        settings.feeds_file = None
    if args.feeds is not None:
        settings.default_feeds = split_urls(args.feeds)
    if args.no_autosave:
        settings.auto_save = False
    return settings


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = settings_from_args(args)

    service = build_service(settings)
    app = create_app(service)

    log_event(
        "server_starting",
        host=settings.host,
        port=settings.port,
        feeds_file=str(settings.feeds_path),
        auto_save=settings.auto_save,
    )
    # uvicorn handles SIGINT/SIGTERM; the app lifespan flushes pending saves
    uvicorn.run(app, host=settings.host, port=settings.port)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
