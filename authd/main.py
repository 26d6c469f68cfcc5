#!/usr/bin/env python3
"""
Main entry point for the authentication daemon
"""

import asyncio
import logging
import sys
from collections.abc import Sequence

from .claims import ClaimDecoder
from .config import DaemonConfig, load_config
from .daemon import RefreshLoop
from .errors import AuthdError
from .logging_config import LoggerConfigurator, log_structured_error
from .login_client import LoginClient, load_secret
from .logs.logger import logger
from .timer import ExpirationTimer
from .token_store import TokenStore
from .watcher import FileWatcher


def log_error(message: str, error: BaseException) -> None:
    """Log ``error`` as one structured line tagged with its category."""
    error_type = error.category if isinstance(error, AuthdError) else "unknown"
    context = dict(error.data) if isinstance(error, AuthdError) else None
    log_structured_error(
        error_type=error_type,
        message=f"{message}: {error}",
        exception=error,
        context=context,
    )


async def serve(config: DaemonConfig) -> None:
    """Run the refresh loop for ``config`` until a fatal error."""
    decoder = ClaimDecoder(verify_key=config.read_verify_key())
    decoder.announce()
    secret = load_secret(config.secret_path)
    async with LoginClient(
        config.endpoint,
        secret,
        config.uid,
        cert_path=config.cert_path,
        timeout=config.login_timeout,
    ) as client:
        daemon = RefreshLoop(
            client,
            TokenStore(config.token_path),
            ExpirationTimer(),
            FileWatcher(config.token_path),
            decoder,
            refresh_margin=config.refresh_margin,
            login_attempts=config.login_attempts,
        )
        try:
            await daemon.run()
        finally:
            await daemon.close()


async def main(argv: Sequence[str] | None = None) -> None:
    """Main entry point of the daemon.

    Raises:
        SystemExit: With status 1 on any error.
    """
    try:
        config = load_config(argv)
        logger.log_event("app", "start", token_path=str(config.token_path))
        await serve(config)
    except asyncio.CancelledError:
        raise
    except AuthdError as e:
        log_error("Authentication daemon failed", e)
        sys.exit(1)
    except Exception as e:
        log_error("Unexpected authentication daemon error", e)
        sys.exit(1)
    finally:
        logging.debug("Authentication daemon main finished")


def run(argv: Sequence[str] | None = None) -> None:
    """Synchronous entry point for the daemon.

    Raises:
        SystemExit: If a critical error occurs during execution.
    """
    LoggerConfigurator().configure()
    try:
        asyncio.run(main(argv))
    except (KeyboardInterrupt, asyncio.CancelledError):
        logger.log_event("app", "interrupted")
        sys.exit(0)
    finally:
        logger.log_event("app", "shutdown")


if __name__ == "__main__":
    run()
