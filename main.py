"""CLI entrypoint: build the static blog or serve it on demand."""

from __future__ import annotations

import argparse
import logging
import os

from dotenv import load_dotenv

from server import BlogSite, serve
from site_builder import build_site


def parse_args() -> argparse.Namespace:
    """Parse command-line flags."""
    parser = argparse.ArgumentParser(description="Render the Prismic-backed blog")
    parser.add_argument(
        "--mode",
        choices=["build", "serve"],
        default="build",
        help="'build' (default): write static pages to --output. 'serve': render pages on request.",
    )
    parser.add_argument("--output", default=os.getenv("SITE_OUTPUT_DIR", "out"), help="Static build output directory")
    parser.add_argument("--host", default=os.getenv("SITE_HOST", "127.0.0.1"), help="Server bind address")
    parser.add_argument("--port", type=int, default=int(os.getenv("SITE_PORT", "3000")), help="Server port")
    return parser.parse_args()


def main() -> None:
    """Load config and run the selected mode."""
    load_dotenv()
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(message)s",
    )
    args = parse_args()

    if args.mode == "serve":
        serve(BlogSite(), host=args.host, port=args.port)
    else:
        written = build_site(args.output)
        logging.info("Wrote %s article pages to %s", written, args.output)


if __name__ == "__main__":
    main()
