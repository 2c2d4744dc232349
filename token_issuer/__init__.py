"""Create a fungible token with metadata and mint its whole supply in one transaction."""

from token_issuer.assembler import AssembledIssuance, IssuanceState, assemble
from token_issuer.config import IssuanceParams, IssuanceRequest, human_amount, params_from_env, resolve
from token_issuer.errors import (
    ConfigurationError,
    ConfirmationTimeoutError,
    IssuanceError,
    NetworkError,
    RejectedError,
    ValidationError,
)
from token_issuer.submitter import Submitter, TransactionResult, mint_exists, submit

__all__ = [
    "AssembledIssuance",
    "ConfigurationError",
    "ConfirmationTimeoutError",
    "IssuanceError",
    "IssuanceParams",
    "IssuanceRequest",
    "IssuanceState",
    "NetworkError",
    "RejectedError",
    "Submitter",
    "TransactionResult",
    "ValidationError",
    "assemble",
    "human_amount",
    "mint_exists",
    "params_from_env",
    "resolve",
    "submit",
]
