"""
Configuration for a single token issuance.

Turns a credential source (SECRET_KEY in the environment or a .env file) and a
literal parameter set into an immutable IssuanceRequest. The two presets are the
mainnet and devnet launches the tool was first written for.
"""

from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass, field
from decimal import Decimal
from typing import Any, Mapping

import base58
from solders.keypair import Keypair
from solders.pubkey import Pubkey

from token_issuer.errors import ConfigurationError

SECRET_KEY_ENV = "SECRET_KEY"
SECRET_KEY_LENGTH = 64

MAINNET_RPC_URL = "https://api.mainnet-beta.solana.com"
DEVNET_RPC_URL = "https://api.devnet.solana.com"

DEFAULT_DECIMALS = 9
DEFAULT_COMPUTE_UNIT_LIMIT = 600_000
DEFAULT_PRIORITY_FEE_MICRO_LAMPORTS = 2_022_000


@dataclass(frozen=True)
class IssuanceParams:
    """Literal parameters for one issuance. Supply is in base units."""

    network_endpoint: str
    token_name: str
    token_symbol: str
    metadata_uri: str
    total_supply_base_units: int
    decimals: int = DEFAULT_DECIMALS
    fee_priority_micro_lamports: int = DEFAULT_PRIORITY_FEE_MICRO_LAMPORTS
    compute_unit_limit: int = DEFAULT_COMPUTE_UNIT_LIMIT
    recipient_address: str | None = None


PRESETS: dict[str, IssuanceParams] = {
    "mainnet": IssuanceParams(
        network_endpoint=MAINNET_RPC_URL,
        token_name="Utherverse",
        token_symbol="UTHX",
        metadata_uri="https://gold-impressive-krill-904.mypinata.cloud/ipfs/Qmbr7edQjFA7o9Drpc8U9YdBVRvUpN2u9QCyVHWns6SogQ",
        total_supply_base_units=1_000_000_000,  # 1 token
    ),
    "devnet": IssuanceParams(
        network_endpoint=DEVNET_RPC_URL,
        token_name="Utherverse",
        token_symbol="UTHR",
        metadata_uri="https://raw.githubusercontent.com/RajaShawaiz/Utherverse/refs/heads/main/metadata.json",
        total_supply_base_units=10_000_000_000_000_000,  # 10 million tokens
    ),
}


@dataclass(frozen=True)
class IssuanceRequest:
    """Fully resolved, immutable request. The credential is kept out of repr."""

    network_endpoint: str
    signing_credential: Keypair = field(repr=False, compare=False)
    token_name: str
    token_symbol: str
    metadata_uri: str
    decimals: int
    total_supply_base_units: int
    recipient_address: Pubkey
    fee_priority_micro_lamports: int
    compute_unit_limit: int

    @property
    def authority(self) -> Pubkey:
        return self.signing_credential.pubkey()

    @property
    def human_amount(self) -> Decimal:
        return human_amount(self.total_supply_base_units, self.decimals)


def human_amount(base_units: int, decimals: int) -> Decimal:
    """Exact token amount for a base-unit quantity: base_units / 10**decimals."""
    return Decimal(base_units).scaleb(-decimals)


def format_amount(amount: Decimal) -> str:
    """Thousands-separated, without trailing fractional zeros: 10,000,000 or 1.5."""
    text = f"{amount:,f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def load_signing_credential(raw: str | None) -> Keypair:
    """
    Decode a secret key: JSON byte array (Solana CLI id.json) or base58 string.
    Must be exactly 64 bytes whose public half matches the secret half.
    """
    if raw is None or not raw.strip():
        raise ConfigurationError(f"{SECRET_KEY_ENV} is not set")
    raw = raw.strip()
    if raw.startswith("["):
        try:
            values = json.loads(raw)
            secret = bytes(values)
        except (json.JSONDecodeError, TypeError, ValueError) as e:
            raise ConfigurationError(f"{SECRET_KEY_ENV} is not a valid JSON byte array") from e
    else:
        try:
            secret = base58.b58decode(raw)
        except ValueError as e:
            raise ConfigurationError(f"{SECRET_KEY_ENV} is not valid base58") from e
    if len(secret) != SECRET_KEY_LENGTH:
        raise ConfigurationError(
            f"{SECRET_KEY_ENV} must decode to {SECRET_KEY_LENGTH} bytes, got {len(secret)}"
        )
    try:
        return Keypair.from_bytes(secret)
    except Exception as e:
        raise ConfigurationError(f"{SECRET_KEY_ENV} is not a consistent ed25519 keypair") from e


def _parse_address(value: str) -> Pubkey:
    try:
        return Pubkey.from_string(value.strip())
    except ValueError as e:
        raise ConfigurationError(f"Invalid recipient address: {value!r}") from e


def _require_int(name: str, value: Any, minimum: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(f"{name} must be an integer, got {value!r}")
    if value < minimum:
        raise ConfigurationError(f"{name} must be >= {minimum}, got {value}")
    return value


def resolve(env: Mapping[str, str] | None, literals: IssuanceParams) -> IssuanceRequest:
    """Build the IssuanceRequest. Reads only SECRET_KEY from `env` (default os.environ)."""
    env = os.environ if env is None else env
    credential = load_signing_credential(env.get(SECRET_KEY_ENV))

    endpoint = (literals.network_endpoint or "").strip()
    if not endpoint:
        raise ConfigurationError("Network endpoint is empty")

    decimals = _require_int("decimals", literals.decimals, 0)
    supply = _require_int("total_supply_base_units", literals.total_supply_base_units, 1)
    fee = _require_int("fee_priority_micro_lamports", literals.fee_priority_micro_lamports, 0)
    limit = _require_int("compute_unit_limit", literals.compute_unit_limit, 1)

    if literals.recipient_address:
        recipient = _parse_address(literals.recipient_address)
    else:
        recipient = credential.pubkey()

    return IssuanceRequest(
        network_endpoint=endpoint,
        signing_credential=credential,
        token_name=literals.token_name,
        token_symbol=literals.token_symbol,
        metadata_uri=literals.metadata_uri,
        decimals=decimals,
        total_supply_base_units=supply,
        recipient_address=recipient,
        fee_priority_micro_lamports=fee,
        compute_unit_limit=limit,
    )


def _env_int(env: Mapping[str, str], name: str) -> int | None:
    raw = (env.get(name) or "").strip().replace("_", "")
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer, got {env.get(name)!r}") from e


def params_from_env(env: Mapping[str, str] | None = None, preset: str | None = None) -> IssuanceParams:
    """
    Build IssuanceParams from environment variables layered over an optional preset.
    Without a preset, RPC_URL, TOKEN_NAME, TOKEN_SYMBOL, METADATA_URI and TOTAL_SUPPLY are required.
    """
    env = os.environ if env is None else env
    if preset is not None:
        if preset not in PRESETS:
            raise ConfigurationError(f"Unknown preset {preset!r}; choose from {', '.join(sorted(PRESETS))}")
        base: dict[str, Any] = asdict(PRESETS[preset])
    else:
        base = {}

    strings = {
        "network_endpoint": "RPC_URL",
        "token_name": "TOKEN_NAME",
        "token_symbol": "TOKEN_SYMBOL",
        "metadata_uri": "METADATA_URI",
        "recipient_address": "RECIPIENT_ADDRESS",
    }
    for key, name in strings.items():
        value = (env.get(name) or "").strip()
        if value:
            base[key] = value

    ints = {
        "decimals": "DECIMALS",
        "total_supply_base_units": "TOTAL_SUPPLY",
        "fee_priority_micro_lamports": "PRIORITY_FEE_MICRO_LAMPORTS",
        "compute_unit_limit": "COMPUTE_UNIT_LIMIT",
    }
    for key, name in ints.items():
        value = _env_int(env, name)
        if value is not None:
            base[key] = value

    missing = [
        strings.get(k) or ints[k]
        for k in ("network_endpoint", "token_name", "token_symbol", "metadata_uri", "total_supply_base_units")
        if k not in base
    ]
    if missing:
        raise ConfigurationError(f"Missing configuration: {', '.join(missing)}")
    return IssuanceParams(**base)
