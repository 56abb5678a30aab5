"""hyperliquid_signing package root.

Encode, hash and sign Hyperliquid exchange actions.

- :py:mod:`hyperliquid_signing.numeric` for wire number formatting
- :py:mod:`hyperliquid_signing.actions` for the action types
- :py:mod:`hyperliquid_signing.signing` for L1 and user-signed action signatures
- :py:mod:`hyperliquid_signing.exchange` for building signed exchange payloads

"""

import sys


#: Minimum required Python version to run this package
MIN_PYTHON_VERSION = (3, 11)


def _check_python_version():
    """Try early abort if the Python version is too old."""

    # Use Python tuple comparison for version numbers
    # https://stackoverflow.com/a/1093331/315168
    if sys.version_info < MIN_PYTHON_VERSION:
        raise RuntimeError(f"hyperliquid-signing needs Python {MIN_PYTHON_VERSION[0]}.{MIN_PYTHON_VERSION[1]} or later")


_check_python_version()
