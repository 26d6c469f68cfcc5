"""
Configuration constants for the authentication daemon

Each constant can be overridden by setting an environment variable with the same name.
"""

import os


def _get_env_int(name: str, default: int) -> int:
    """Retrieve an integer value from an environment variable.

    Attempts to parse the environment variable as an integer. If the variable
    is not set or cannot be parsed, prints a warning and returns the default value.

    Args:
        name: The name of the environment variable to read.
        default: The default integer value to return if parsing fails.

    Returns:
        The parsed integer value from the environment, or the default if unavailable.
    """
    value = os.getenv(name)
    if value is not None:
        try:
            return int(value)
        except ValueError:
            print(
                f"Warning: Invalid integer value for {name}='{value}', using default {default}"
            )
    return default


def _get_env_float(name: str, default: float) -> float:
    """Retrieve a float value from an environment variable.

    Args:
        name: The name of the environment variable to read.
        default: The default float value to return if parsing fails.

    Returns:
        The parsed float value from the environment, or the default if unavailable.
    """
    value = os.getenv(name)
    if value is not None:
        try:
            return float(value)
        except ValueError:
            print(
                f"Warning: Invalid float value for {name}='{value}', using default {default}"
            )
    return default


# Login assertion
ASSERTION_LIFETIME_SECONDS = _get_env_int(
    "ASSERTION_LIFETIME_SECONDS", 1000
)  # Lifetime of the signed login assertion
ASSERTION_ALGORITHM = os.getenv("ASSERTION_ALGORITHM", "RS256")
DEFAULT_UID = os.getenv("DEFAULT_UID", "strict-usi")  # Service account user id

# Network/HTTP constants
LOGIN_TIMEOUT_SECONDS = _get_env_float(
    "LOGIN_TIMEOUT_SECONDS", 30.0
)  # Total timeout of one login request

# Issued token verification
TOKEN_VERIFY_ALGORITHMS = tuple(
    a.strip()
    for a in os.getenv("TOKEN_VERIFY_ALGORITHMS", "RS256").split(",")
    if a.strip()
)

# Watcher
WATCH_JOIN_TIMEOUT_SECONDS = _get_env_float(
    "WATCH_JOIN_TIMEOUT_SECONDS", 5.0
)  # Max wait for the observer thread on shutdown

# Optional login retry extension (disabled unless login_attempts > 1)
RETRY_BACKOFF_MULTIPLIER = _get_env_int(
    "RETRY_BACKOFF_MULTIPLIER", 1
)  # Exponential backoff multiplier
RETRY_MAX_BACKOFF_SECONDS = _get_env_int(
    "RETRY_MAX_BACKOFF_SECONDS", 60
)  # Maximum backoff time in seconds

# Logging
TOKEN_FINGERPRINT_LENGTH = _get_env_int(
    "TOKEN_FINGERPRINT_LENGTH", 12
)  # Hex digits of the token digest shown in logs
