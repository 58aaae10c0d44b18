"""Exception hierarchy for STRUK."""


class StrukError(Exception):
    """Base class for all receipt pipeline errors."""


class LogoDecodeError(StrukError):
    """The store logo could not be decoded into a pixel buffer.

    Never fatal for a receipt: the logo stage is skipped and the
    receipt is printed text-only.
    """


class EncoderUnavailableError(StrukError):
    """The command encoder cannot be used (unknown text code page)."""


class MalformedTransactionError(StrukError):
    """A transaction record is missing required numeric fields."""


class MalformedLabelError(StrukError):
    """A shelf label request cannot be encoded."""


class CommandStreamFinalizedError(StrukError):
    """A command was appended after the stream was encoded."""
