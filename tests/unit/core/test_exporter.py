"""
Tests for the commit sink and the CSV / Excel export.
"""

import csv
from decimal import Decimal

import openpyxl
import pytest

from catalog_draft_builder.core.exporter import (
    CollectingSink,
    export_products_to_csv,
    product_to_row,
)
from catalog_draft_builder.core.product_schema import AttachmentSlot, Category, Product


@pytest.fixture
def product():
    return Product(
        id="p-1",
        title="Trail Headphones",
        category="Electronics",
        price=Decimal("59.90"),
        original_price=Decimal("79.90"),
        description="Good.",
        image="https://img.example.com/a.jpg",
        images=("https://img.example.com/a.jpg", "data:image/png;base64,AAAA"),
        stock=4,
        attachments={AttachmentSlot.TECHNICAL_SHEET: "https://docs.example.com/sheet.pdf"},
    )


def test_product_to_row(product):
    row = product_to_row(product)

    assert row["price"] == "59.90"
    assert row["original_price"] == "79.90"
    assert row["stock"] == "4"
    assert row["image_1"] == "https://img.example.com/a.jpg"
    assert row["image_2"].startswith("embedded image/png")
    assert row["image_3"] == ""
    assert row["image_10"] == ""
    assert row["technical_sheet"] == "https://docs.example.com/sheet.pdf"
    assert row["instructions"] == ""
    assert product.on_sale and product.in_stock


def test_export_csv(tmp_path, product):
    path = export_products_to_csv([product], tmp_path / "out" / "products.csv")

    with path.open(encoding="utf-8-sig", newline="") as f:
        rows = list(csv.DictReader(f))
    assert len(rows) == 1
    assert rows[0]["title"] == "Trail Headphones"
    assert rows[0]["id"] == "p-1"


def test_export_nothing_is_an_error(tmp_path):
    with pytest.raises(ValueError):
        export_products_to_csv([], tmp_path / "products.csv")


def test_collecting_sink_exports_excel(tmp_path, product):
    sink = CollectingSink()
    sink(product)
    sink(Category(id="cat_1", name="Audio", image="https://img.example.com/c.jpg"))

    assert len(sink.products) == 1
    assert len(sink.categories) == 1

    path = sink.export(tmp_path / "products.xlsx")
    ws = openpyxl.load_workbook(path).active
    assert ws.cell(row=1, column=2).value == "Title"
    assert ws.cell(row=2, column=2).value == "Trail Headphones"


def test_collecting_sink_rejects_unknown_format(tmp_path, product):
    sink = CollectingSink()
    sink(product)
    with pytest.raises(ValueError):
        sink.export(tmp_path / "products.json")


def test_collecting_sink_rejects_other_objects():
    with pytest.raises(TypeError):
        CollectingSink()({"id": 1})
