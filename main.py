#!/usr/bin/env python3
"""
youtube-dl-web v1.0.0 — Main entry point.
A small web interface that queues YouTube downloads and serves the results.
"""

import argparse
import logging
import shutil
import sys
import traceback
from datetime import datetime
from pathlib import Path

# ── Determine project root ────────────────────────────────────────────
PROJECT_ROOT = Path(__file__).resolve().parent

if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from ytdlweb.core.constants import APP_NAME, APP_VERSION, ErrorCode
from ytdlweb.core.config import AppConfig
from ytdlweb.core.error_codes import JobError

logger = logging.getLogger(APP_NAME)


def setup_logging(log_file: str | None = None, verbose: bool = False):
    """Log to stderr, and to log_file as well when given."""
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=handlers,
    )


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog=APP_NAME,
                                     description="Web interface for youtube downloads")
    parser.add_argument("--results",
                        help="path to store downloaded files (automatically cleaned)")
    parser.add_argument("--workdir",
                        help="path to store temporary files (automatically cleaned)")
    parser.add_argument("--addr", help="address to listen")
    parser.add_argument("--users",
                        help="path to csv file with user,password pairs "
                             "(leave empty to disable authentication)")
    parser.add_argument("--config", help="path to JSON config file")
    parser.add_argument("--log-file", help="also write logs to this file")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser.parse_args(argv)


def check_prerequisites(config: AppConfig):
    """Check that the fetch tool is available and the directories are usable."""
    from ytdlweb.core.diagnostics import get_diagnostics
    from ytdlweb.core.download_video import ensure_dirs

    tool = shutil.which(config.fetch_tool)
    if not tool:
        raise JobError(ErrorCode.DOWNLOAD_FAILED,
                       f"{config.fetch_tool} not found in PATH")
    logger.info("%s found at: %s", config.fetch_tool, tool)

    ensure_dirs(config.work_dir, config.results_dir)
    info = get_diagnostics(config)
    logger.info("%s version: %s", config.fetch_tool, info["fetch_tool_version"])
    if not info["same_filesystem"]:
        logger.warning("%s and %s are on different filesystems; "
                       "finished downloads cannot be moved atomically",
                       config.work_dir, config.results_dir)
    if not info["upstream_ok"]:
        logger.warning("Upstream check failed: %s", info["upstream_message"])


def run(args: argparse.Namespace):
    from ytdlweb.core.credentials import Realm
    from ytdlweb.core.job_queue import JobQueueManager
    from ytdlweb.web.server import serve

    config = AppConfig(args.config,
                       results_dir=args.results,
                       work_dir=args.workdir,
                       addr=args.addr,
                       users_file=args.users)
    config.validate()
    check_prerequisites(config)

    realm = Realm.from_file(config.users_file) if config.users_file else None

    manager = JobQueueManager(config)
    manager.start_processing()
    serve(config.addr, manager, realm)


def main(argv=None):
    args = parse_args(argv)
    setup_logging(args.log_file, args.verbose)

    logger.info("=" * 60)
    logger.info("%s v%s starting at %s", APP_NAME, APP_VERSION, datetime.now().isoformat())
    logger.info("Python: %s", sys.executable)
    logger.info("=" * 60)

    try:
        run(args)
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
    except JobError as e:
        logger.error("%s", e)
        sys.exit(1)
    except Exception as e:
        logger.critical("Fatal error: %s: %s\n%s", type(e).__name__, e, traceback.format_exc())
        sys.exit(1)


if __name__ == "__main__":
    main()
