from .errors import (
    ApprovalDeniedError,
    ConfigurationError,
    RpcError,
    ValidationError,
    WalletError,
    rpc_response,
    to_rpc_error,
)
from .finalizer import NonceSerializingFinalizer
from .hooks import WalletHooks
from .subprovider import SUPPORTED_METHODS, HookedWalletSubprovider, Response, build_hooked_wallet

__all__ = [
    "ApprovalDeniedError",
    "ConfigurationError",
    "HookedWalletSubprovider",
    "NonceSerializingFinalizer",
    "Response",
    "RpcError",
    "SUPPORTED_METHODS",
    "ValidationError",
    "WalletError",
    "WalletHooks",
    "build_hooked_wallet",
    "rpc_response",
    "to_rpc_error",
]
