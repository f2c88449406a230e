"""
Warehouse Main Entry Point
==========================
Process start: logging → configuration check → schema migrations,
then an optional balance rebuild.

    python main.py                 # logging, config check and migrations
    python main.py --recompute     # also rebuild balances from documents
"""
import argparse
import logging
import sys

from core.config import get_cors_origins, get_log_level, validate_config
from core.logging_config import LoggingConfig
from exceptions import WarehouseError
from version import APP_NAME, VERSION

logger = logging.getLogger(__name__)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(prog=APP_NAME, description="Warehouse backend bootstrap")
    parser.add_argument("--recompute", action="store_true",
                        help="rebuild every balance row from receipts and signed shipments")
    parser.add_argument("--log-level", default=None, help="override LOG_LEVEL")
    parser.add_argument("--version", action="version", version=f"{APP_NAME} {VERSION}")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)

    # 1) Logging
    LoggingConfig.setup_logging(log_level=args.log_level or get_log_level())
    LoggingConfig.cleanup_old_logs(days_to_keep=30)
    logger.info(f"{APP_NAME} {VERSION} starting")

    try:
        # 2) Configuration
        validate_config()
        logger.info(f"CORS origins: {', '.join(get_cors_origins())}")

        # 3) Schema
        from database.bootstrap import run_bootstrap
        run_bootstrap()

        # 4) Balances
        if args.recompute:
            from services.balance_service import BalanceService
            stats = BalanceService().recompute()
            logger.info(
                f"Balances rebuilt in {stats.duration_seconds:.2f}s "
                f"({stats.created} created, {stats.updated} updated, {stats.removed} removed)"
            )
    except WarehouseError as exc:
        logger.error(f"Startup failed: {exc}", exc_info=True)
        return 1

    logger.info(f"{APP_NAME} ready")
    return 0


if __name__ == "__main__":
    sys.exit(main())
