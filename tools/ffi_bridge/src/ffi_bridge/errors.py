"""Errors the native library raises across the FFI boundary.

The native side names the error it wants raised (``UntrustedIdentityError``,
``SealedSenderSelfSend``) and passes its payload; :func:`error_from_native`
turns that into one of the classes below. Catch sites branch on the class or
on :attr:`BridgedError.kind`, never on the message text.

The set of kinds is closed. Adding a kind is compatible for callers that
fall through to :class:`BridgedError`; renaming or removing one breaks every
binding.
"""

from __future__ import annotations

import enum
import logging
from types import MappingProxyType
from typing import Any, Mapping, Sequence

logger = logging.getLogger(__name__)

# Set by the interpreter while an exception propagates.
_INTERPRETER_ATTRS = frozenset({"__traceback__", "__context__", "__cause__", "__suppress_context__", "__notes__"})


class ErrorKind(enum.Enum):
    UNTRUSTED_IDENTITY = "UntrustedIdentityError"
    SEALED_SENDER_SELF_SEND = "SealedSenderSelfSend"


class BridgedError(Exception):
    """Base for every error raised through the bridge.

    Instances are read-only once constructed.
    """

    kind: ErrorKind | None = None

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self._frozen = True

    def __setattr__(self, name: str, value: Any) -> None:
        if getattr(self, "_frozen", False) and name not in _INTERPRETER_ATTRS:
            raise AttributeError(f"{type(self).__name__} is immutable")
        super().__setattr__(name, value)

    def __reduce__(self) -> tuple[Any, ...]:
        return (type(self), (self.message,))

    @property
    def message(self) -> str:
        return str(self.args[0]) if self.args else ""

    def as_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value if self.kind is not None else None,
            "message": self.message,
        }


class NativeError(BridgedError):
    """A native failure with no dedicated class; only the message is available."""


class UntrustedIdentityError(BridgedError):
    kind = ErrorKind.UNTRUSTED_IDENTITY

    def __init__(self, address: str) -> None:
        if not isinstance(address, str) or not address:
            raise ValueError("UntrustedIdentityError requires a non-empty address")
        self._address = address
        super().__init__(f"untrusted identity for address {address}")

    @property
    def address(self) -> str:
        return self._address

    def __reduce__(self) -> tuple[Any, ...]:
        return (type(self), (self._address,))

    def as_dict(self) -> dict[str, Any]:
        payload = super().as_dict()
        payload["address"] = self._address
        return payload


class SealedSenderSelfSend(BridgedError):
    """Sealed-sender message whose sender is the receiving identity itself.

    Decryption is declined on purpose; the ciphertext is not corrupt and
    retrying will not produce a plaintext.
    """

    kind = ErrorKind.SEALED_SENDER_SELF_SEND

    def __init__(self, message: str) -> None:
        super().__init__(str(message))


ERROR_CLASSES: Mapping[ErrorKind, type[BridgedError]] = MappingProxyType(
    {
        ErrorKind.UNTRUSTED_IDENTITY: UntrustedIdentityError,
        ErrorKind.SEALED_SENDER_SELF_SEND: SealedSenderSelfSend,
    }
)

_HANDLING_HINTS: Mapping[ErrorKind, str] = MappingProxyType(
    {
        ErrorKind.UNTRUSTED_IDENTITY: "retry-after-trust",
        ErrorKind.SEALED_SENDER_SELF_SEND: "terminal",
    }
)


def error_from_native(name: str, args: Sequence[Any], fallback_message: str) -> BridgedError:
    """Build the error the native layer asked for by name.

    Unknown names, or payloads the class rejects, degrade to
    :class:`NativeError` carrying ``fallback_message``.
    """
    try:
        kind = ErrorKind(name)
    except ValueError:
        logger.warning("could not construct %s: unknown error kind", name)
        return NativeError(fallback_message)

    error_class = ERROR_CLASSES[kind]
    try:
        return error_class(*args)
    except (TypeError, ValueError) as exc:
        logger.warning("could not construct %s: %s", name, exc)
        return NativeError(fallback_message)


def handling_hint(error: BridgedError) -> str:
    if error.kind is None:
        return "generic"
    hint = _HANDLING_HINTS.get(error.kind)
    if hint is None:
        raise AssertionError(f"no handling defined for error kind {error.kind.value}")
    return hint
