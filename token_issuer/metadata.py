"""
Token-metadata program instructions (CreateV1 + MintV1).

Together these two instructions are the program's "create and mint" flow: CreateV1
initializes the mint account and its metadata account, MintV1 creates the
recipient's associated token account if needed and mints the supply into it.
Instruction data is Borsh: discriminator u8, sub-discriminator u8, then args.
Optional accounts that are not used are filled with the program id.
"""

from __future__ import annotations

import struct
from enum import IntEnum

from solders.instruction import AccountMeta, Instruction
from solders.pubkey import Pubkey
from solders.system_program import ID as SYS_PROGRAM_ID
from spl.token.constants import ASSOCIATED_TOKEN_PROGRAM_ID, TOKEN_PROGRAM_ID
from spl.token.instructions import get_associated_token_address

TOKEN_METADATA_PROGRAM_ID = Pubkey.from_string("metaqbxxUerdq28cj1RbAWkYQm3ybzjb6a8bt518x1s")
SYSVAR_INSTRUCTIONS_ID = Pubkey.from_string("Sysvar1nstructions1111111111111111111111111")

CREATE_DISCRIMINATOR = 42
MINT_DISCRIMINATOR = 43
V1 = 0

MAX_NAME_LENGTH = 32
MAX_SYMBOL_LENGTH = 10
MAX_URI_LENGTH = 200
MAX_CREATOR_SHARE = 100


class TokenStandard(IntEnum):
    NON_FUNGIBLE = 0
    FUNGIBLE_ASSET = 1
    FUNGIBLE = 2
    NON_FUNGIBLE_EDITION = 3
    PROGRAMMABLE_NON_FUNGIBLE = 4


def _u8(value: int) -> bytes:
    return struct.pack("<B", value)


def _u16(value: int) -> bytes:
    return struct.pack("<H", value)


def _u64(value: int) -> bytes:
    return struct.pack("<Q", value)


def _bool(value: bool) -> bytes:
    return b"\x01" if value else b"\x00"


def _string(value: str) -> bytes:
    raw = value.encode("utf-8")
    return struct.pack("<I", len(raw)) + raw


def find_metadata_pda(mint: Pubkey) -> Pubkey:
    """Seeds: [b'metadata', program_id, mint]."""
    pda, _ = Pubkey.find_program_address(
        [b"metadata", bytes(TOKEN_METADATA_PROGRAM_ID), bytes(mint)],
        TOKEN_METADATA_PROGRAM_ID,
    )
    return pda


def _unused_account() -> AccountMeta:
    return AccountMeta(pubkey=TOKEN_METADATA_PROGRAM_ID, is_signer=False, is_writable=False)


def encode_create_v1_data(
    name: str,
    symbol: str,
    uri: str,
    creator: Pubkey,
    decimals: int,
    *,
    seller_fee_basis_points: int = 0,
    token_standard: TokenStandard = TokenStandard.FUNGIBLE,
    is_mutable: bool = True,
) -> bytes:
    """
    CreateV1 args: AssetData followed by decimals (Option<u8>) and print supply (Option, None).

    AssetData carries the authority as the single verified creator with a 100% share;
    primary sale not happened; no collection, uses, collection details, or rule set.
    """
    data = bytearray()
    data += _u8(CREATE_DISCRIMINATOR)
    data += _u8(V1)
    data += _string(name)
    data += _string(symbol)
    data += _string(uri)
    data += _u16(seller_fee_basis_points)
    # creators: Some(vec![Creator { address, verified: true, share: 100 }])
    data += _u8(1) + struct.pack("<I", 1) + bytes(creator) + _bool(True) + _u8(MAX_CREATOR_SHARE)
    data += _bool(False)  # primary_sale_happened
    data += _bool(is_mutable)
    data += _u8(int(token_standard))
    data += _u8(0)  # collection
    data += _u8(0)  # uses
    data += _u8(0)  # collection_details
    data += _u8(0)  # rule_set
    data += _u8(1) + _u8(decimals)
    data += _u8(0)  # print_supply
    return bytes(data)


def build_create_v1_instruction(
    mint: Pubkey,
    authority: Pubkey,
    payer: Pubkey,
    name: str,
    symbol: str,
    uri: str,
    decimals: int,
    *,
    seller_fee_basis_points: int = 0,
) -> Instruction:
    """Create the fungible mint and its metadata account. The mint must sign."""
    accounts = [
        AccountMeta(pubkey=find_metadata_pda(mint), is_signer=False, is_writable=True),
        _unused_account(),  # master_edition, unused for fungibles
        AccountMeta(pubkey=mint, is_signer=True, is_writable=True),
        AccountMeta(pubkey=authority, is_signer=True, is_writable=False),
        AccountMeta(pubkey=payer, is_signer=True, is_writable=True),
        AccountMeta(pubkey=authority, is_signer=True, is_writable=False),  # update_authority
        AccountMeta(pubkey=SYS_PROGRAM_ID, is_signer=False, is_writable=False),
        AccountMeta(pubkey=SYSVAR_INSTRUCTIONS_ID, is_signer=False, is_writable=False),
        AccountMeta(pubkey=TOKEN_PROGRAM_ID, is_signer=False, is_writable=False),
    ]
    data = encode_create_v1_data(
        name,
        symbol,
        uri,
        authority,
        decimals,
        seller_fee_basis_points=seller_fee_basis_points,
    )
    return Instruction(program_id=TOKEN_METADATA_PROGRAM_ID, data=data, accounts=accounts)


def encode_mint_v1_data(amount: int) -> bytes:
    """MintV1 args: amount u64, authorization_data None."""
    return _u8(MINT_DISCRIMINATOR) + _u8(V1) + _u64(amount) + _u8(0)


def build_mint_v1_instruction(
    mint: Pubkey,
    authority: Pubkey,
    payer: Pubkey,
    token_owner: Pubkey,
    amount: int,
) -> Instruction:
    """Mint `amount` base units into the owner's associated token account."""
    token_account = get_associated_token_address(token_owner, mint)
    accounts = [
        AccountMeta(pubkey=token_account, is_signer=False, is_writable=True),
        AccountMeta(pubkey=token_owner, is_signer=False, is_writable=False),
        AccountMeta(pubkey=find_metadata_pda(mint), is_signer=False, is_writable=False),
        _unused_account(),  # master_edition
        _unused_account(),  # token_record, only for programmable NFTs
        AccountMeta(pubkey=mint, is_signer=False, is_writable=True),
        AccountMeta(pubkey=authority, is_signer=True, is_writable=False),
        _unused_account(),  # delegate_record
        AccountMeta(pubkey=payer, is_signer=True, is_writable=True),
        AccountMeta(pubkey=SYS_PROGRAM_ID, is_signer=False, is_writable=False),
        AccountMeta(pubkey=SYSVAR_INSTRUCTIONS_ID, is_signer=False, is_writable=False),
        AccountMeta(pubkey=TOKEN_PROGRAM_ID, is_signer=False, is_writable=False),
        AccountMeta(pubkey=ASSOCIATED_TOKEN_PROGRAM_ID, is_signer=False, is_writable=False),
        _unused_account(),  # authorization_rules_program
        _unused_account(),  # authorization_rules
    ]
    return Instruction(program_id=TOKEN_METADATA_PROGRAM_ID, data=encode_mint_v1_data(amount), accounts=accounts)
