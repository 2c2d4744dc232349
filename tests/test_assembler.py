"""Tests for token_issuer.assembler: ordering, determinism, validation and the bundle state machine."""

from __future__ import annotations

from dataclasses import replace

import pytest
from solders.compute_budget import ID as COMPUTE_BUDGET_ID
from solders.compute_budget import set_compute_unit_limit, set_compute_unit_price

from token_issuer.assembler import IssuanceState, assemble, describe
from token_issuer.errors import ValidationError
from token_issuer.metadata import TOKEN_METADATA_PROGRAM_ID, encode_mint_v1_data


def test_instruction_order(request_):
    assembled = assemble(request_)
    programs = [ix.program_id for ix in assembled.instructions]
    assert programs == [COMPUTE_BUDGET_ID, COMPUTE_BUDGET_ID, TOKEN_METADATA_PROGRAM_ID, TOKEN_METADATA_PROGRAM_ID]
    assert assembled.instructions[0] == set_compute_unit_limit(request_.compute_unit_limit)
    assert assembled.instructions[1] == set_compute_unit_price(request_.fee_priority_micro_lamports)
    assert assembled.instructions[2].data[0] == 42
    assert assembled.instructions[3].data == encode_mint_v1_data(request_.total_supply_base_units)


@pytest.mark.parametrize("limit,price", [(1, 0), (200_000, 1), (1_400_000, 10_000_000)])
def test_fee_instructions_precede_mint(request_, limit, price):
    request = replace(request_, compute_unit_limit=limit, fee_priority_micro_lamports=price)
    instructions = assemble(request).instructions
    metadata_positions = [i for i, ix in enumerate(instructions) if ix.program_id == TOKEN_METADATA_PROGRAM_ID]
    budget_positions = [i for i, ix in enumerate(instructions) if ix.program_id == COMPUTE_BUDGET_ID]
    assert max(budget_positions) < min(metadata_positions)


def test_deterministic_modulo_mint(request_):
    first = assemble(request_)
    second = assemble(request_)
    assert first.mint_address != second.mint_address

    for a, b in zip(first.instructions, second.instructions):
        assert a.program_id == b.program_id
        assert a.data == b.data
        assert len(a.accounts) == len(b.accounts)
        for meta_a, meta_b in zip(a.accounts, b.accounts):
            assert (meta_a.is_signer, meta_a.is_writable) == (meta_b.is_signer, meta_b.is_writable)
    # the compute budget instructions carry no mint-dependent accounts at all
    assert first.instructions[:2] == second.instructions[:2]


def test_mint_is_fresh_and_starts_built(request_):
    assembled = assemble(request_)
    assert assembled.state is IssuanceState.BUILT
    create = assembled.instructions[2]
    assert create.accounts[2].pubkey == assembled.mint_address
    assert create.accounts[2].is_signer


def test_zero_supply_rejected(request_):
    with pytest.raises(ValidationError, match="greater than zero"):
        assemble(replace(request_, total_supply_base_units=0))


@pytest.mark.parametrize(
    "changes",
    [
        {"decimals": 256},
        {"total_supply_base_units": 2**64},
        {"token_name": "x" * 33},
        {"token_symbol": "TOOLONGSYMB"},
        {"metadata_uri": "https://example.com/" + "a" * 200},
        {"compute_unit_limit": 2**32},
    ],
)
def test_structural_limits(request_, changes):
    with pytest.raises(ValidationError):
        assemble(replace(request_, **changes))


def test_max_values_accepted(request_):
    assembled = assemble(replace(request_, total_supply_base_units=2**64 - 1, token_name="n" * 32, token_symbol="S" * 10))
    assert len(assembled.instructions) == 4


def test_state_machine_transitions(request_):
    assembled = assemble(request_)
    with pytest.raises(ValueError):
        assembled.advance(IssuanceState.SUBMITTED)
    assembled.advance(IssuanceState.SIGNED)
    assembled.advance(IssuanceState.SUBMITTED)
    assembled.advance(IssuanceState.CONFIRMED)
    for state in IssuanceState:
        with pytest.raises(ValueError):
            assembled.advance(state)


def test_describe_has_no_secret(request_, env):
    assembled = assemble(request_)
    text = describe(assembled)
    assert str(assembled.mint_address) in text
    assert "Supply:         1 (1000000000 base units, 9 decimals)" in text
    assert env["SECRET_KEY"] not in text
    assert "4. program=" in text
