"""Wallet keypair loading."""

import json
from pathlib import Path

import base58
import structlog
from solders.keypair import Keypair

logger = structlog.get_logger(__name__)


def load_base58_secret_from_string(secret_str: str) -> bytes:
    """Decode a base58-encoded 64-byte secret key.

    Args:
        secret_str: Base58-encoded secret key string

    Returns:
        64-byte secret key
    """
    try:
        secret_bytes = base58.b58decode(secret_str.strip())
    except ValueError as e:
        raise ValueError(f"Invalid base58 secret key: {e}") from e

    if len(secret_bytes) != 64:
        raise ValueError(
            f"Invalid secret key length: {len(secret_bytes)} bytes (expected 64)"
        )
    return secret_bytes


def load_json_keypair(json_path: str) -> bytes:
    """Load secret key from a JSON keypair file (solana-keygen format).

    Args:
        json_path: Path to JSON keypair file

    Returns:
        64-byte secret key
    """
    try:
        data = json.loads(Path(json_path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ValueError(f"Failed to load JSON keypair from {json_path}: {e}") from e

    if isinstance(data, dict):
        data = data.get("secretKey")
        if isinstance(data, str):
            return load_base58_secret_from_string(data)

    if not isinstance(data, list) or len(data) != 64:
        raise ValueError(f"Invalid JSON keypair format in {json_path}")
    return bytes(data)


def load_wallets(
    private_keys: list[str], keypair_paths: list[str] | None = None
) -> list[Keypair]:
    """Load every configured wallet, rejecting duplicates.

    Raises:
        ValueError: If a key cannot be decoded or no wallet is configured
    """
    wallets: list[Keypair] = []
    seen: set[str] = set()

    secrets = [load_base58_secret_from_string(k) for k in private_keys]
    secrets += [load_json_keypair(p) for p in keypair_paths or []]

    for secret in secrets:
        keypair = Keypair.from_bytes(secret)
        pubkey = str(keypair.pubkey())
        if pubkey in seen:
            logger.warning("Duplicate wallet ignored", pubkey=pubkey)
            continue
        seen.add(pubkey)
        wallets.append(keypair)

    if not wallets:
        raise ValueError("No wallet configured")

    logger.info(
        "Wallets loaded",
        count=len(wallets),
        pubkeys=[str(w.pubkey()) for w in wallets],
    )
    return wallets
