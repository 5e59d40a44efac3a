"""PKCE (Proof Key for Code Exchange) utilities: verifier, S256 challenge and the per-attempt pair."""

import base64
import hashlib
import secrets
from dataclasses import dataclass

from .storage import PKCE_VERIFIER_KEY, ProfileStorage

VERIFIER_BYTES = 64


@dataclass
class PKCEPair:
    verifier: str
    challenge: str


def generate_verifier() -> str:
    # 64 random bytes, hex-encoded: 128 chars, all within the unreserved alphabet
    return secrets.token_bytes(VERIFIER_BYTES).hex()


def derive_challenge(verifier: str) -> str:
    digest = hashlib.sha256(verifier.encode("utf-8")).digest()
    return base64.urlsafe_b64encode(digest).decode("ascii").rstrip("=")


def create_pkce_pair(storage: ProfileStorage) -> PKCEPair:
    """Generate a pair and persist its verifier, replacing any unfinished login attempt."""
    verifier = generate_verifier()
    pair = PKCEPair(verifier=verifier, challenge=derive_challenge(verifier))
    storage.set(PKCE_VERIFIER_KEY, pair.verifier)
    return pair
