# core/folder_utils.py

from __future__ import annotations

import re
from decimal import Decimal
from typing import NamedTuple, Optional, Sequence

from catalog_draft_builder.config.settings import CATEGORIES

# trailing "_59.9" / "_25" / "_12,50"
_PRICE_SUFFIX = re.compile(r"^(?P<body>.*?)_(?P<price>\d+(?:[.,]\d{1,2})?)$")


class FolderName(NamedTuple):
    """What a product folder's name says about the draft."""

    category: str
    keywords: str
    title: str
    price: Optional[Decimal]


def match_category(value: str, categories: Sequence[str] = CATEGORIES) -> Optional[str]:
    """Return the catalog's spelling of ``value`` (case-insensitive), or None."""
    wanted = value.strip().casefold()
    for category in categories:
        if category.casefold() == wanted:
            return category
    return None


def parse_folder_name(name: str, categories: Sequence[str] = CATEGORIES) -> FolderName:
    """
    Split a folder name of the form ``{category}-{keywords}-{title}_{price}``.

    Every part except the title is optional:
      "Electronics-waterproof,bluetooth-Trail Headphones_59.9"
      "fashion-Linen Shirt_25"
      "Desk Lamp"

    A known category is returned in the catalog's spelling; an unknown one is
    kept as written. A suffix that is not a price stays part of the title.
    """
    body = name.strip()
    price = None
    m = _PRICE_SUFFIX.match(body)
    if m and m.group("body").strip():
        body = m.group("body")
        price = Decimal(m.group("price").replace(",", "."))

    parts = [p.strip() for p in body.split("-") if p.strip()]
    if not parts:
        return FolderName("", "", "", price)
    if len(parts) == 1:
        return FolderName("", "", parts[0], price)

    head, *middle, title = parts
    category = match_category(head, categories) or head
    return FolderName(category, "-".join(middle), title, price)
