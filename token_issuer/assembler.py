"""
Transaction assembly for one issuance.

Generates a fresh mint keypair and the ordered instruction list:
compute-unit limit, compute-unit price, CreateV1, MintV1. The fee instructions
come first so the whole bundle is prioritized. No network I/O happens here.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from solders.compute_budget import set_compute_unit_limit, set_compute_unit_price
from solders.instruction import Instruction
from solders.keypair import Keypair
from solders.pubkey import Pubkey

from token_issuer.config import IssuanceRequest, format_amount
from token_issuer.errors import ValidationError
from token_issuer.logger import get_logger
from token_issuer.metadata import (
    MAX_NAME_LENGTH,
    MAX_SYMBOL_LENGTH,
    MAX_URI_LENGTH,
    build_create_v1_instruction,
    build_mint_v1_instruction,
)

logger = get_logger(__name__)

MAX_DECIMALS = 0xFF
MAX_U32 = 0xFFFF_FFFF
MAX_U64 = 0xFFFF_FFFF_FFFF_FFFF


class IssuanceState(str, Enum):
    BUILT = "built"
    SIGNED = "signed"
    SUBMITTED = "submitted"
    CONFIRMED = "confirmed"
    REJECTED = "rejected"
    TIMED_OUT = "timed_out"


_TRANSITIONS: dict[IssuanceState, frozenset[IssuanceState]] = {
    IssuanceState.BUILT: frozenset({IssuanceState.SIGNED}),
    IssuanceState.SIGNED: frozenset({IssuanceState.SUBMITTED}),
    IssuanceState.SUBMITTED: frozenset(
        {IssuanceState.CONFIRMED, IssuanceState.REJECTED, IssuanceState.TIMED_OUT}
    ),
    IssuanceState.CONFIRMED: frozenset(),
    IssuanceState.REJECTED: frozenset(),
    IssuanceState.TIMED_OUT: frozenset(),
}


@dataclass
class AssembledIssuance:
    """Instruction bundle plus the mint keypair that must co-sign it."""

    request: IssuanceRequest
    mint: Keypair = field(repr=False)
    instructions: list[Instruction]
    state: IssuanceState = IssuanceState.BUILT

    @property
    def mint_address(self) -> Pubkey:
        return self.mint.pubkey()

    def advance(self, new_state: IssuanceState) -> None:
        if new_state not in _TRANSITIONS[self.state]:
            raise ValueError(f"Illegal issuance transition {self.state.value} -> {new_state.value}")
        self.state = new_state


def _check_request(request: IssuanceRequest) -> None:
    if request.total_supply_base_units <= 0:
        raise ValidationError("Total supply must be greater than zero")
    if request.total_supply_base_units > MAX_U64:
        raise ValidationError(f"Total supply {request.total_supply_base_units} does not fit in u64")
    if request.decimals < 0 or request.decimals > MAX_DECIMALS:
        raise ValidationError(f"Decimals must be between 0 and {MAX_DECIMALS}, got {request.decimals}")
    for label, value, limit in (
        ("name", request.token_name, MAX_NAME_LENGTH),
        ("symbol", request.token_symbol, MAX_SYMBOL_LENGTH),
        ("uri", request.metadata_uri, MAX_URI_LENGTH),
    ):
        if len(value.encode("utf-8")) > limit:
            raise ValidationError(f"Token {label} exceeds {limit} bytes")
    if not 0 < request.compute_unit_limit <= MAX_U32:
        raise ValidationError(f"Compute unit limit must be between 1 and {MAX_U32}")
    if not 0 <= request.fee_priority_micro_lamports <= MAX_U64:
        raise ValidationError("Priority fee does not fit in u64")


def build_instructions(request: IssuanceRequest, mint: Pubkey) -> list[Instruction]:
    """Ordered instructions for `request` minting into the account at `mint`."""
    authority = request.authority
    return [
        set_compute_unit_limit(request.compute_unit_limit),
        set_compute_unit_price(request.fee_priority_micro_lamports),
        build_create_v1_instruction(
            mint=mint,
            authority=authority,
            payer=authority,
            name=request.token_name,
            symbol=request.token_symbol,
            uri=request.metadata_uri,
            decimals=request.decimals,
            seller_fee_basis_points=0,
        ),
        build_mint_v1_instruction(
            mint=mint,
            authority=authority,
            payer=authority,
            token_owner=request.recipient_address,
            amount=request.total_supply_base_units,
        ),
    ]


def assemble(request: IssuanceRequest) -> AssembledIssuance:
    """Validate `request`, generate a fresh mint identity and build the bundle."""
    _check_request(request)
    mint = Keypair()
    instructions = build_instructions(request, mint.pubkey())
    logger.info(
        "issuance_assembled",
        mint=str(mint.pubkey()),
        symbol=request.token_symbol,
        instructions=len(instructions),
    )
    return AssembledIssuance(request=request, mint=mint, instructions=instructions)


def describe(assembled: AssembledIssuance) -> str:
    """Human-readable summary of a bundle. Contains no secret material."""
    req = assembled.request
    lines = [
        f"Endpoint:       {req.network_endpoint}",
        f"Authority:      {req.authority}",
        f"Mint:           {assembled.mint_address}",
        f"Recipient:      {req.recipient_address}",
        f"Token:          {req.token_name} ({req.token_symbol})",
        f"Metadata URI:   {req.metadata_uri}",
        f"Supply:         {format_amount(req.human_amount)} ({req.total_supply_base_units} base units, {req.decimals} decimals)",
        f"Compute limit:  {req.compute_unit_limit}",
        f"Priority fee:   {req.fee_priority_micro_lamports} micro-lamports/CU",
        "Instructions:",
    ]
    for i, ix in enumerate(assembled.instructions, start=1):
        lines.append(f"  {i}. program={ix.program_id} accounts={len(ix.accounts)} data={len(ix.data)}B")
    return "\n".join(lines)
