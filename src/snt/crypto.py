"""Cosmetic stand-ins for cryptographic operations.

None of these provide any security. They tag strings so the transmission
stages have something recognisable to show.
"""

from __future__ import annotations

import json
import random
import string
from collections.abc import Iterable

HASH_ALPHABET = "abcdef0123456789"
KEY_ALPHABET = string.ascii_uppercase + string.ascii_lowercase + string.digits
KEY_LENGTH = 32
HASH_LENGTH = 64


def simulate_aes_encryption(data: str) -> str:
    return f"AES_{data}_ENCRYPTED"


def simulate_aes_decryption(encrypted: str) -> str:
    return encrypted.replace("AES_", "", 1).replace("_ENCRYPTED", "", 1)


def simulate_rsa_encryption(data: str) -> str:
    return f"RSA_{data}_ENCRYPTED"


def simulate_rsa_decryption(encrypted: str) -> str:
    return encrypted.replace("RSA_", "", 1).replace("_ENCRYPTED", "", 1)


def simulate_sha256_hash(data: str) -> str:
    """Deterministic 64-character hex-looking digest of ``data``.

    Derived from the JSON-quoted input, character by character; identical
    inputs always give identical digests.
    """
    quoted = json.dumps(data, ensure_ascii=False)
    return "".join(
        HASH_ALPHABET[(ord(quoted[i % len(quoted)]) + i) % len(HASH_ALPHABET)]
        for i in range(HASH_LENGTH)
    )


def generate_encryption_key(rng: random.Random | None = None) -> str:
    rng = rng if rng is not None else random.Random()
    return "".join(rng.choice(KEY_ALPHABET) for _ in range(KEY_LENGTH))


def simulate_key_exchange(
    node_ids: Iterable[str],
    rng: random.Random | None = None,
) -> dict[str, str]:
    """Fresh session key per node, as a key management system would issue."""
    rng = rng if rng is not None else random.Random()
    return {node_id: generate_encryption_key(rng) for node_id in node_ids}
