"""Core data model and settings access for STRUK."""

from .errors import (
    CommandStreamFinalizedError,
    EncoderUnavailableError,
    LogoDecodeError,
    MalformedLabelError,
    MalformedTransactionError,
    StrukError,
)
from .models import FeeApplication, FeeType, LineItem, PaperSize, StoreProfile, TransactionRecord
from .payment import (
    PaymentState,
    PaymentStatus,
    change_status,
    complete_transaction,
    payment_status,
    preview_transaction,
)
from .store import InMemorySettingsStore, JsonSettingsStore, SettingsStore, load_store_profile

__all__ = [
    "StrukError",
    "LogoDecodeError",
    "EncoderUnavailableError",
    "MalformedTransactionError",
    "MalformedLabelError",
    "CommandStreamFinalizedError",
    "FeeApplication",
    "FeeType",
    "LineItem",
    "PaperSize",
    "StoreProfile",
    "TransactionRecord",
    "PaymentState",
    "PaymentStatus",
    "complete_transaction",
    "change_status",
    "payment_status",
    "preview_transaction",
    "SettingsStore",
    "InMemorySettingsStore",
    "JsonSettingsStore",
    "load_store_profile",
]
