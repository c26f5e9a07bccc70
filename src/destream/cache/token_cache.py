"""
Persistent session cache.

The cache is a small JSON file holding the provider's session object:

    {"AccessToken": "...", "ApiGatewayUri": "...", "ApiGatewayVersion": "..."}

Reading never raises: any problem means "no cached session" and the caller
logs in again. Writing is best effort.
"""

from __future__ import annotations

import base64
import binascii
import json
import math
import logging
import time
from pathlib import Path

from pydantic import ValidationError

from destream.api.schemas import SessionInfo
from destream.config import defaults
from destream.models.session import Session

logger = logging.getLogger(__name__)


def token_expiry(token: str) -> int | None:
    """Return the ``exp`` claim of a JWT, or None for opaque tokens."""
    parts = token.split(".")
    if len(parts) != 3:
        return None

    payload = parts[1]
    payload += "=" * (-len(payload) % 4)
    try:
        claims = json.loads(base64.urlsafe_b64decode(payload))
    except (binascii.Error, ValueError):
        return None

    exp = claims.get("exp") if isinstance(claims, dict) else None
    if isinstance(exp, (int, float)) and not isinstance(exp, bool):
        # Infinity and NaN decode as floats; an unusable claim counts as expired
        return int(exp) if math.isfinite(exp) else 0
    return None


class TokenCache:
    """Read and write the cached Session.

    Args:
        path: Cache file location
        min_validity: Tokens with less remaining lifetime (seconds) are
            treated as expired
    """

    def __init__(self, path: Path | str, min_validity: int = defaults.TOKEN_MIN_VALIDITY):
        self.path = Path(path)
        self.min_validity = min_validity

    def read(self) -> Session | None:
        """Load the cached Session.

        Returns:
            The Session, or None when the cache is missing, unreadable,
            malformed or holds a token about to expire
        """
        if not self.path.exists():
            logger.debug(f"No session cache at {self.path}")
            return None

        try:
            raw = self.path.read_text(encoding="utf-8")
            session = SessionInfo.model_validate_json(raw).to_session()
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Could not read session cache {self.path}: {e}")
            return None
        except ValidationError as e:
            logger.warning(f"Ignoring invalid session cache {self.path}: {e.error_count()} error(s)")
            return None

        exp = token_expiry(session.access_token)
        if exp is not None:
            remaining = exp - int(time.time())
            if remaining < self.min_validity:
                logger.info("Access token has expired")
                return None
            minutes, seconds = divmod(remaining, 60)
            logger.info(f"Access token still good for {minutes} minutes and {seconds} seconds")

        return session

    def write(self, session: Session) -> bool:
        """Persist the Session.

        Returns:
            True on success; failures are logged, never raised
        """
        data = SessionInfo.from_session(session).model_dump(by_alias=True)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(data), encoding="utf-8")
        except OSError as e:
            logger.warning(f"Failed to write session cache {self.path}: {e}")
            return False

        logger.info("Fresh access token dropped into the cache")
        return True
