from __future__ import annotations

import hashlib
import hmac
import secrets


def hash_secret(secret: str, *, rounds: int = 200_000, salt: str | None = None) -> str:
    salt = salt or secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac("sha256", secret.encode("utf-8"), bytes.fromhex(salt), rounds).hex()
    return f"pbkdf2_sha256${rounds}${salt}${digest}"


def verify_secret(stored: str, provided: str) -> bool:
    if not stored.startswith("pbkdf2_sha256$"):
        return False
    try:
        _algo, rounds_s, salt, digest = stored.split("$", 3)
        rounds = int(rounds_s)
        candidate = hashlib.pbkdf2_hmac(
            "sha256",
            provided.encode("utf-8"),
            bytes.fromhex(salt),
            rounds,
        ).hex()
    except ValueError:
        return False
    return hmac.compare_digest(candidate, digest)
