"""Centralized logging configuration for the insights gateway.

This module provides thread-safe, idempotent logfire configuration so that
logfire is configured exactly once per process, whether the gateway is started
through the console script or imported by an ASGI server.

Usage:
    # At application entry points:
    from insights_gateway.core.logging import configure_logging
    configure_logging()

    # Then use logfire normally:
    import logfire
    logfire.info("Gateway started")
"""

import sys
import threading

import logfire

_configured = False
_config_lock = threading.Lock()


def configure_logging(enable_console: bool = False, min_level: str = "info") -> None:
    """Configure logfire logging if not already configured.

    Args:
        enable_console: Whether to enable console logging output. Defaults to False.
        min_level: Lowest level that is emitted (``debug``, ``info``, ``warn``...).

    Thread-safe implementation using double-checked locking pattern.
    """
    global _configured

    # Fast path - avoid lock if already configured
    if _configured:
        return

    with _config_lock:
        if not _configured:
            try:
                if enable_console:
                    logfire.configure(
                        send_to_logfire="if-token-present",
                        console=logfire.ConsoleOptions(min_log_level=min_level),
                        min_level=min_level,
                    )
                else:
                    logfire.configure(
                        send_to_logfire="if-token-present", console=False, min_level=min_level
                    )
                _configured = True
            except Exception as e:
                # Log to stderr since logfire isn't configured yet
                print(f"Failed to configure logfire: {e}", file=sys.stderr)


def is_configured() -> bool:
    """Check if logfire has been configured."""
    return _configured
