"""Errors raised by the encode, hash and sign pipeline.

None of these are transient. The pipeline does no I/O, so a failed call
must be fixed at the originating action and re-attempted with a new nonce.
"""


class HyperliquidSigningError(Exception):
    """Base class for all errors raised by this package."""


class PrecisionError(HyperliquidSigningError, ValueError):
    """A number cannot be represented at the required wire precision.

    Do not truncate and resubmit. Reject the originating request instead.
    """

    def __init__(self, message: str, value: float):
        super().__init__(f"{message}: {value!r}")
        #: The offending input value
        self.value = value


class SchemaError(HyperliquidSigningError, ValueError):
    """An action is malformed.

    E.g. an order without limit or trigger type, a bad client order id,
    a vault address of wrong length or a missing ``signatureChainId``.
    """


class SigningError(HyperliquidSigningError):
    """Key material is invalid or EIP-712 encoding failed."""
