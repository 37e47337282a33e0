"""Configuration settings for the storage gateway."""

import os
import secrets
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


STORAGE_ROOT = os.environ.get("GATEWAY_STORAGE_ROOT", "./data/containers")

GATEWAY_HOST = os.environ.get("GATEWAY_HOST", "0.0.0.0")

GATEWAY_PORT = int(os.environ.get("GATEWAY_PORT", "8000"))

# Unset means requests are accepted without an Authorization header
ACCOUNT_KEY = os.environ.get("GATEWAY_ACCOUNT_KEY")

LINK_SECRET = os.environ.get("GATEWAY_LINK_SECRET")

PUBLIC_URL = os.environ.get("GATEWAY_PUBLIC_URL", f"http://localhost:{GATEWAY_PORT}")

MAX_LINK_EXPIRY_SECONDS = 7 * 24 * 60 * 60


@dataclass(frozen=True)
class GatewaySettings:
    """Resolved settings a gateway app instance runs with."""
    storage_root: Path
    account_key: Optional[str]
    link_secret: str
    public_url: str

    @classmethod
    def from_environment(cls) -> "GatewaySettings":
        """
        Build settings from the GATEWAY_* environment variables.

        Without GATEWAY_LINK_SECRET the account key signs links; without
        either, a per-process random secret is generated.
        """
        return cls(
            storage_root=Path(STORAGE_ROOT),
            account_key=ACCOUNT_KEY,
            link_secret=LINK_SECRET or ACCOUNT_KEY or secrets.token_hex(32),
            public_url=PUBLIC_URL.rstrip("/"),
        )
