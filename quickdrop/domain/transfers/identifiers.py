"""
Transfer Identifiers

Generation and validation of the opaque identifiers that name in-flight transfers.

An identifier is the only secret a downloader needs, so it is drawn from the
operating system CSPRNG: 16 random bytes (128 bits), hex encoded. With n
transfers live at the same time the chance of any collision is roughly
n**2 / 2**129, below 1e-26 for a million concurrent transfers, so no
uniqueness check against the store is performed.
"""

import re
import secrets

from quickdrop.domain.errors import EntropyUnavailableError

IDENTIFIER_BYTES = 16

_IDENTIFIER_PATTERN = re.compile(r"[0-9a-f]{%d}" % (IDENTIFIER_BYTES * 2))


def generate_identifier() -> str:
    """
    Generate a new transfer identifier.

    Returns:
        32 lowercase hex characters

    Raises:
        EntropyUnavailableError: If the secure randomness source is unavailable
    """
    try:
        return secrets.token_hex(IDENTIFIER_BYTES)
    except (OSError, NotImplementedError) as e:
        raise EntropyUnavailableError(
            "Secure randomness source unavailable", original_error=e
        ) from e


def is_valid_identifier(value: str) -> bool:
    """Check that a client-supplied identifier has the generated shape."""
    return isinstance(value, str) and bool(_IDENTIFIER_PATTERN.fullmatch(value))
