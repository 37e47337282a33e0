"""Account key authentication and signed time-bounded links."""

import hashlib
import hmac
import time
from datetime import datetime, timezone
from typing import Callable, Optional, Tuple
from urllib.parse import parse_qs, quote, unquote, urlparse

from fastapi import Header, Request

from gateway.exceptions import AuthenticationFailedError, LinkExpiredError

OBJECTS_SEGMENT = "objects"


def check_account_key(expected: Optional[str], authorization: Optional[str]) -> None:
    """
    Compare a Bearer credential against the configured account key.

    Args:
        expected: Configured key, or None when authentication is disabled
        authorization: Authorization header value (format: "Bearer <account_key>")

    Raises:
        AuthenticationFailedError: If the header is missing, malformed or wrong
    """
    if expected is None:
        return
    if not authorization or not authorization.startswith("Bearer "):
        raise AuthenticationFailedError("Missing or malformed Authorization header")
    provided = authorization[len("Bearer "):]
    if not hmac.compare_digest(provided.encode("utf-8"), expected.encode("utf-8")):
        raise AuthenticationFailedError("Account key rejected")


async def verify_account_key(request: Request, authorization: Optional[str] = Header(None)) -> None:
    """FastAPI dependency enforcing the account key configured on the app."""
    check_account_key(request.app.state.settings.account_key, authorization)


class LinkSigner:
    """
    Issues and verifies links of the form
    ``{public_url}/containers/{c}/objects/{key}?se={expiry}&sig={hmac}``.
    """

    def __init__(self, secret: str, public_url: str, clock: Callable[[], float] = time.time):
        self.secret = secret.encode("utf-8")
        self.public_url = public_url.rstrip("/")
        self._clock = clock

    def sign(self, container: str, key: str, expires_at: int) -> str:
        message = f"{container}\n{key}\n{expires_at}".encode("utf-8")
        return hmac.new(self.secret, message, hashlib.sha256).hexdigest()

    def issue(self, container: str, key: str, expiry_seconds: int) -> Tuple[str, datetime]:
        """
        Create a signed link for one object.

        Returns:
            Tuple of (uri, expires_at)
        """
        expires_at = int(self._clock()) + expiry_seconds
        signature = self.sign(container, key, expires_at)
        uri = (
            f"{self.public_url}/containers/{quote(container)}/{OBJECTS_SEGMENT}/"
            f"{quote(key, safe='/')}?se={expires_at}&sig={signature}"
        )
        return uri, datetime.fromtimestamp(expires_at, tz=timezone.utc)

    def verify(self, container: str, key: str, expires_at: str, signature: str) -> None:
        """
        Check a link's signature and expiry.

        Raises:
            AuthenticationFailedError: If the signature does not match
            LinkExpiredError: If the link is past its expiry
        """
        if not expires_at.isdigit():
            raise AuthenticationFailedError("Malformed link expiry")
        expected = self.sign(container, key, int(expires_at))
        if not hmac.compare_digest(expected, signature):
            raise AuthenticationFailedError("Link signature does not match")
        if int(expires_at) < self._clock():
            raise LinkExpiredError("Link has expired")

    def resolve(self, uri: str) -> Tuple[str, str]:
        """
        Verify a link issued by this signer and return what it points at.

        Returns:
            Tuple of (container, key)
        """
        parsed = urlparse(uri)
        parts = parsed.path.lstrip("/").split("/", 3)
        if len(parts) != 4 or parts[0] != "containers" or parts[2] != OBJECTS_SEGMENT or not parts[3]:
            raise AuthenticationFailedError("Not a link issued by this gateway")
        container, key = unquote(parts[1]), unquote(parts[3])
        query = parse_qs(parsed.query)
        self.verify(container, key, query.get("se", [""])[0], query.get("sig", [""])[0])
        return container, key
