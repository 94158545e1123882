from .errors import (
    ERROR_CLASSES,
    BridgedError,
    ErrorKind,
    NativeError,
    SealedSenderSelfSend,
    UntrustedIdentityError,
    error_from_native,
    handling_hint,
)

__all__ = [
    "BridgedError",
    "ERROR_CLASSES",
    "ErrorKind",
    "NativeError",
    "SealedSenderSelfSend",
    "UntrustedIdentityError",
    "error_from_native",
    "handling_hint",
]
