"""
Chain Adapters - Error Handling and Normalization.

============================================================
PURPOSE
============================================================
Single funnel turning any provider, wallet or codec failure into
one normalized error shape:
- Unified error taxonomy across chain families
- Operation-aware default classification
- Retry eligibility for the caller (adapters never retry)
- Provider stack shapes discarded, message kept

============================================================
ERROR KINDS
============================================================
Codec:     MalformedIdentifier, UnsupportedNetwork, InvalidReference
Base:      InvalidDerivationParams
Provider:  ProviderUnavailable, AccountNotFound
Fees:      FeeDataUnavailable, GasEstimationFailed
Wallet:    WalletUnavailable, UserRejected, SigningFailed
Broadcast: BroadcastFailed

============================================================
"""

import functools
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional


logger = logging.getLogger(__name__)


# ============================================================
# ERROR TAXONOMY
# ============================================================

class ErrorKind(Enum):
    """Normalized error kinds."""

    MALFORMED_IDENTIFIER = "MalformedIdentifier"
    UNSUPPORTED_NETWORK = "UnsupportedNetwork"
    INVALID_REFERENCE = "InvalidReference"
    INVALID_DERIVATION_PARAMS = "InvalidDerivationParams"
    PROVIDER_UNAVAILABLE = "ProviderUnavailable"
    ACCOUNT_NOT_FOUND = "AccountNotFound"
    FEE_DATA_UNAVAILABLE = "FeeDataUnavailable"
    GAS_ESTIMATION_FAILED = "GasEstimationFailed"
    WALLET_UNAVAILABLE = "WalletUnavailable"
    USER_REJECTED = "UserRejected"
    SIGNING_FAILED = "SigningFailed"
    BROADCAST_FAILED = "BroadcastFailed"


class RetryEligibility(Enum):
    """Whether the caller may safely re-invoke the operation."""

    RETRY = "RETRY"           # Idempotent, transient
    NO_RETRY = "NO_RETRY"     # Will fail again or is not idempotent


# Kinds a caller may retry by re-invoking an idempotent operation
RETRYABLE_KINDS = frozenset({
    ErrorKind.PROVIDER_UNAVAILABLE,
    ErrorKind.FEE_DATA_UNAVAILABLE,
    ErrorKind.GAS_ESTIMATION_FAILED,
})

# Operations that submit transactions; never eligible for retry
NON_IDEMPOTENT_OPERATIONS = frozenset({
    "broadcast_transaction",
    "sign_and_broadcast_transaction",
})

# Kind used when nothing more specific is known about a failure
OPERATION_DEFAULT_KINDS: Dict[str, ErrorKind] = {
    "get_chain_id": ErrorKind.PROVIDER_UNAVAILABLE,
    "get_account": ErrorKind.PROVIDER_UNAVAILABLE,
    "get_tx_history": ErrorKind.PROVIDER_UNAVAILABLE,
    "get_fee_data": ErrorKind.FEE_DATA_UNAVAILABLE,
    "get_address": ErrorKind.WALLET_UNAVAILABLE,
    "sign_transaction": ErrorKind.SIGNING_FAILED,
    "sign_and_broadcast_transaction": ErrorKind.BROADCAST_FAILED,
    "broadcast_transaction": ErrorKind.BROADCAST_FAILED,
    "subscribe_txs": ErrorKind.PROVIDER_UNAVAILABLE,
}

# Kind used when a provider answers "not found" (HTTP 404)
NOT_FOUND_KINDS: Dict[str, ErrorKind] = {
    "get_account": ErrorKind.ACCOUNT_NOT_FOUND,
}

_KINDS_BY_VALUE = {kind.value: kind for kind in ErrorKind}


# ============================================================
# COLLABORATOR FAILURES
# ============================================================

class ProviderError(Exception):
    """Failure reported by a node/indexer/oracle client."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
        request_url: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.response_body = response_body
        self.request_url = request_url


class WalletError(Exception):
    """Failure reported by a wallet."""


class ActionCancelled(WalletError):
    """User rejected the request on the device."""


# ============================================================
# ADAPTER ERROR
# ============================================================

@dataclass
class AdapterError:
    """
    Standardized adapter error.

    Same shape regardless of chain family, provider or wallet.
    """

    kind: ErrorKind
    message: str

    retry_eligible: RetryEligibility = RetryEligibility.NO_RETRY

    # Context
    operation: Optional[str] = None
    chain_family: Optional[str] = None
    provider_status: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "kind": self.kind.value,
            "message": self.message,
            "retry_eligible": self.retry_eligible.value,
            "operation": self.operation,
            "chain_family": self.chain_family,
            "provider_status": self.provider_status,
        }

    def is_retryable(self) -> bool:
        return self.retry_eligible is RetryEligibility.RETRY

    def __str__(self) -> str:
        return f"[{self.kind.value}] {self.message}"


class ChainAdapterException(Exception):
    """Exception wrapper for AdapterError."""

    def __init__(self, error: AdapterError):
        self.error = error
        super().__init__(str(error))

    @property
    def kind(self) -> ErrorKind:
        return self.error.kind

    @property
    def message(self) -> str:
        return self.error.message


# ============================================================
# CONSTRUCTION
# ============================================================

def _retry_eligibility(kind: ErrorKind, operation: Optional[str]) -> RetryEligibility:
    if operation in NON_IDEMPOTENT_OPERATIONS:
        return RetryEligibility.NO_RETRY
    if kind in RETRYABLE_KINDS:
        return RetryEligibility.RETRY
    return RetryEligibility.NO_RETRY


def create_error(
    kind: ErrorKind,
    message: str,
    operation: Optional[str] = None,
    chain_family: Optional[str] = None,
    provider_status: Optional[int] = None,
) -> ChainAdapterException:
    """Create a normalized exception."""
    return ChainAdapterException(
        AdapterError(
            kind=kind,
            message=message,
            retry_eligible=_retry_eligibility(kind, operation),
            operation=operation,
            chain_family=chain_family,
            provider_status=provider_status,
        )
    )


def _describe(error: BaseException) -> str:
    text = str(error).strip()
    return text or error.__class__.__name__


# ============================================================
# NORMALIZATION FUNNEL
# ============================================================

def normalize_error(
    error: BaseException,
    operation: Optional[str] = None,
    chain_family: Optional[str] = None,
) -> ChainAdapterException:
    """
    Map any failure to a ChainAdapterException.

    Already normalized errors are returned unchanged so a failure is
    never wrapped twice.

    Args:
        error: Raised exception
        operation: Public adapter operation name
        chain_family: Chain family namespace (e.g. "cosmos")

    Returns:
        Normalized exception (callers raise it ``from error``)
    """
    if isinstance(error, ChainAdapterException):
        return error

    message = _describe(error)
    default_kind = OPERATION_DEFAULT_KINDS.get(operation or "", ErrorKind.PROVIDER_UNAVAILABLE)

    # Codec errors and anything else exposing a taxonomy kind
    kind_value = getattr(error, "kind", None)
    if isinstance(kind_value, str) and kind_value in _KINDS_BY_VALUE:
        return create_error(_KINDS_BY_VALUE[kind_value], message, operation, chain_family)

    if isinstance(error, ActionCancelled):
        return create_error(ErrorKind.USER_REJECTED, message, operation, chain_family)

    if isinstance(error, ProviderError):
        kind = default_kind
        if error.status_code == 404 and operation in NOT_FOUND_KINDS:
            kind = NOT_FOUND_KINDS[operation]
        return create_error(kind, message, operation, chain_family, error.status_code)

    logger.debug(f"Normalizing {error.__class__.__name__} in {operation}: {message}")
    return create_error(default_kind, message, operation, chain_family)


def normalized_errors(operation: str) -> Callable:
    """
    Decorator for adapter coroutines: every failure leaves as a
    ChainAdapterException tagged with ``operation`` and the adapter's
    chain family. The original failure is chained as ``__cause__``.
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(self, *args, **kwargs):
            try:
                return await func(self, *args, **kwargs)
            except ChainAdapterException as e:
                # Fill missing context; never re-wrap
                if e.error.operation is None:
                    e.error.operation = operation
                    e.error.retry_eligible = _retry_eligibility(e.error.kind, operation)
                if e.error.chain_family is None:
                    e.error.chain_family = self.chain_family.value
                raise
            except Exception as e:
                raise normalize_error(e, operation, self.chain_family.value) from e
        return wrapper
    return decorator
