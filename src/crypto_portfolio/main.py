import argparse
import logging
from typing import Optional, Sequence

import uvicorn

from . import settings
from .logging_config import setup_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
	parser = argparse.ArgumentParser(prog="crypto-portfolio-api", description="Serve the portfolio API")
	parser.add_argument("--host", default=None, help="Bind address (default: PORTFOLIO_HOST)")
	parser.add_argument("--port", type=int, default=None, help="Port (default: PORTFOLIO_PORT)")
	parser.add_argument(
		"--reload",
		action="store_true",
		default=None,
		help="Restart on code changes (default: PORTFOLIO_RELOAD)",
	)
	return parser


def main(argv: Optional[Sequence[str]] = None) -> None:
	args = build_parser().parse_args(argv)
	setup_logging()

	host = args.host or settings.get_portfolio_host()
	port = args.port if args.port is not None else settings.get_portfolio_port()
	reload = args.reload if args.reload is not None else settings.get_portfolio_reload()

	logger.info(
		"Serving portfolio API on %s:%s (holdings: %s, cache ttl: %ss)",
		host,
		port,
		settings.get_holdings_path(),
		settings.get_cache_ttl_seconds(),
	)

	uvicorn.run(
		"crypto_portfolio.api:app",
		host=host,
		port=port,
		reload=reload,
	)


if __name__ == "__main__":
	main()
