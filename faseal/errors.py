"""Exceptions raised by the signature and key-encapsulation schemes."""


class _FasealError(Exception):
    """Common behaviour: fall back to a fixed message when none is given."""

    _default_message = ""

    def __init__(self, *args):
        if not args and self._default_message:
            args = (self._default_message,)
        super().__init__(*args)


class SignatureError(_FasealError):
    """Base class for signature failures."""

    _default_message = "Signature: error."


class InvalidSignatureError(SignatureError):
    """The signature does not verify or is malformed."""

    _default_message = "Signature: invalid signature."


class InvalidPublicKeyError(SignatureError):
    """The verifying key is malformed."""

    _default_message = "Signature: invalid verifying key."


class ContextTooLongError(SignatureError):
    """The signing context string is longer than 255 bytes."""

    _default_message = "Signature: too long."


class KemError(_FasealError):
    """Base class for key-encapsulation failures."""

    _default_message = "KEM: error."


class InvalidDecapsulationKeyError(KemError):
    """The decapsulation key fails validation."""

    _default_message = "KEM: invalid decapsulation key."


class InvalidEncapsulationKeyError(KemError):
    """The encapsulation key fails validation."""

    _default_message = "KEM: invalid encapsulation key."