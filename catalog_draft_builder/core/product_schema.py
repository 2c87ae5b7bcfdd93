from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

# An image reference is either a remote URL or a data URI; never parsed here
ImageRef = str


class AttachmentSlot(str, Enum):
    """Document slots on a product (usually PDFs)."""

    TECHNICAL_SHEET = "technical_sheet"
    INSTRUCTIONS = "instructions"


class EnrichmentKind(str, Enum):
    TEXT = "text"
    IMAGES = "images"


class LoadingStatus(str, Enum):
    IDLE = "idle"
    IN_FLIGHT = "in_flight"


@dataclass
class LoadingState:
    """Per-kind progress flag of an authoring session, plus the last failure."""

    status: LoadingStatus = LoadingStatus.IDLE
    error: Optional[Exception] = None

    @property
    def in_flight(self) -> bool:
        return self.status is LoadingStatus.IN_FLIGHT


@dataclass(frozen=True)
class DraftEvent:
    """
    Notification sent to session listeners.

    action: "dispatched" / "resolved" / "rejected" / "cancelled"
    ("cancelled" means the awaiting task was cancelled, not the session)
    """

    kind: EnrichmentKind
    action: str
    status: LoadingStatus
    error: Optional[Exception] = None


@dataclass
class Draft:
    """产品草稿：一次编辑会话中的可变记录"""

    title: str = ""
    category: str = ""
    price: Optional[Decimal] = None
    original_price: Optional[Decimal] = None
    description: str = ""
    primary_image: Optional[ImageRef] = None
    gallery: List[ImageRef] = field(default_factory=list)
    stock: Optional[int] = None
    attachments: Dict[AttachmentSlot, ImageRef] = field(default_factory=dict)


@dataclass
class CategoryDraft:
    """分类草稿"""

    name: str = ""
    description: str = ""
    image: Optional[ImageRef] = None


class Rating(BaseModel):
    model_config = ConfigDict(frozen=True)

    rate: float = 0.0
    count: int = 0


class Product(BaseModel):
    """
    Finalized catalog item handed to the commit sink.
    Only ``ProductDraftBuilder.commit`` creates these.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    category: str
    price: Decimal = Field(ge=0)
    original_price: Decimal = Field(default=Decimal("0"), ge=0)
    description: str = ""
    image: ImageRef
    images: Tuple[ImageRef, ...] = ()
    stock: int = Field(default=0, ge=0)
    attachments: Dict[AttachmentSlot, ImageRef] = Field(default_factory=dict)
    rating: Rating = Field(default_factory=Rating)

    @property
    def on_sale(self) -> bool:
        return self.original_price > self.price

    @property
    def in_stock(self) -> bool:
        return self.stock > 0


class Category(BaseModel):
    """Finalized category handed to the commit sink."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    image: ImageRef
    description: str = ""
