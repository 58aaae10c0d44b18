"""Data model for receipts.

Transaction records arrive as plain mappings (camelCase keys, as stored
by the point-of-sale front end) and are validated with pydantic so a
receipt is never rendered with blank or NaN amounts. The store profile
is a plain dataclass assembled from the settings store.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, List, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, PositiveInt, ValidationError

from struk.core.errors import MalformedTransactionError


class FeeType(str, Enum):
    """How a fee value is interpreted."""

    PERCENTAGE = "percentage"
    FIXED = "fixed"


class _Record(BaseModel):
    model_config = ConfigDict(
        populate_by_name=True,
        frozen=True,
        allow_inf_nan=False,
        extra="ignore",
    )


class LineItem(_Record):
    """One product line of a sale."""

    name: str
    quantity: PositiveInt
    unit_price: float = Field(alias="price")
    effective_unit_price: Optional[float] = Field(default=None, alias="effectivePrice")
    discount_percentage: float = Field(default=0, alias="discountPercentage", ge=0, le=100)

    @property
    def effective_price(self) -> float:
        """Unit price after discount."""
        if self.effective_unit_price is not None:
            return self.effective_unit_price
        return self.unit_price * (1 - self.discount_percentage / 100)

    @property
    def extended_total(self) -> float:
        return self.effective_price * self.quantity


class FeeApplication(_Record):
    """A fee applied on top of the discounted subtotal."""

    name: str
    type: FeeType
    value: float
    computed_amount: float = Field(alias="amount")


class TransactionRecord(_Record):
    """A completed (or previewed) sale.

    ``total`` equals the discounted subtotal plus every fee's computed
    amount; it is computed once when the sale completes and never
    recomputed by the renderers.
    """

    id: Optional[Union[int, str]] = None
    items: List[LineItem] = Field(min_length=1)
    subtotal: float
    total_discount: float = Field(default=0, alias="totalDiscount")
    fees: List[FeeApplication] = Field(default_factory=list)
    total: float
    cash_paid: float = Field(alias="cashPaid")
    change: float
    timestamp: datetime = Field(alias="date")
    is_preview: bool = Field(default=False, alias="isPreview")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TransactionRecord":
        """Validate a raw transaction mapping.

        Raises:
            MalformedTransactionError: if required numeric fields are
                missing or invalid
        """
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            fields = sorted({".".join(str(p) for p in err["loc"]) for err in e.errors()})
            raise MalformedTransactionError(
                f"Invalid transaction record: {', '.join(fields)}"
            ) from e

    def to_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class PaperSize(Enum):
    """Supported paper widths: (name, character columns, dot columns)."""

    MM58 = ("58mm", 32, 384)
    MM80 = ("80mm", 42, 576)

    def __init__(self, label: str, chars: int, dots: int):
        self.label = label
        self.chars = chars
        self.dots = dots

    @classmethod
    def parse(cls, value: Optional[str]) -> "PaperSize":
        """Anything other than "58mm" is treated as 80mm paper."""
        if isinstance(value, PaperSize):
            return value
        return cls.MM58 if value == "58mm" else cls.MM80


@dataclass(frozen=True)
class StoreProfile:
    """Store-level settings printed on every receipt."""

    name: str = "Toko Anda"
    address: str = ""
    feedback_phone: str = ""
    footer_text: str = "Terima kasih!"
    paper: PaperSize = PaperSize.MM80
    show_logo: bool = True
    logo: Optional[Union[bytes, str]] = None

    @property
    def chars(self) -> int:
        return self.paper.chars

    @property
    def dots(self) -> int:
        return self.paper.dots

    @property
    def prints_logo(self) -> bool:
        return bool(self.show_logo and self.logo)
