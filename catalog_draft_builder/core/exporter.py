# core/exporter.py

from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import Any, Dict, List, Sequence, Union

import openpyxl
from openpyxl.styles import Alignment, Font
from openpyxl.utils import get_column_letter

from catalog_draft_builder.config.settings import DEFAULT_CURRENCY
from catalog_draft_builder.core.asset_ingestor import describe_ref
from catalog_draft_builder.core.product_schema import AttachmentSlot, Category, Product

logger = logging.getLogger(__name__)

MAX_IMAGE_COLUMNS = 10

# (字段名, 表头, 列宽)
PRODUCT_COLUMNS = [
    ("id", "ID", 34),
    ("title", "Title", 40),
    ("category", "Category", 20),
    ("price", "Price", 12),
    ("original_price", "Original price", 14),
    ("currency", "Currency", 10),
    ("stock", "Stock", 10),
    ("description", "Description", 80),
    ("image", "Main image", 40),
] + [
    (f"image_{i}", f"Image {i}", 30) for i in range(1, MAX_IMAGE_COLUMNS + 1)
] + [
    ("technical_sheet", "Technical sheet", 30),
    ("instructions", "Instructions", 30),
]


def product_to_row(product: Product, currency: str = DEFAULT_CURRENCY) -> Dict[str, Any]:
    """
    将 Product 转换为表格的一行数据。
    Embedded images/documents are summarised so the sheet stays readable.
    """
    image_names = [describe_ref(ref) for ref in product.images[:MAX_IMAGE_COLUMNS]]

    row = {
        "id": product.id,
        "title": product.title,
        "category": product.category,
        "price": str(product.price),
        "original_price": str(product.original_price) if product.original_price else "",
        "currency": currency,
        "stock": str(product.stock),
        "description": product.description,
        "image": describe_ref(product.image),
        "technical_sheet": describe_ref(product.attachments[AttachmentSlot.TECHNICAL_SHEET])
        if AttachmentSlot.TECHNICAL_SHEET in product.attachments
        else "",
        "instructions": describe_ref(product.attachments[AttachmentSlot.INSTRUCTIONS])
        if AttachmentSlot.INSTRUCTIONS in product.attachments
        else "",
    }

    # 图片列不足的用空字符串填充
    for i in range(MAX_IMAGE_COLUMNS):
        row[f"image_{i + 1}"] = image_names[i] if i < len(image_names) else ""

    return row


def export_products_to_csv(products: Sequence[Product], output_path: Path) -> Path:
    """
    将多个 Product 导出为 CSV 文件。

    Returns:
        输出文件路径
    """
    if not products:
        raise ValueError("no products to export")

    output_path.parent.mkdir(parents=True, exist_ok=True)
    fieldnames = [name for name, _, _ in PRODUCT_COLUMNS]

    # utf-8-sig 让 Excel 正确识别编码
    with output_path.open("w", newline="", encoding="utf-8-sig") as f:
        writer = csv.DictWriter(f, fieldnames=fieldnames, extrasaction="ignore")
        writer.writeheader()
        for product in products:
            writer.writerow(product_to_row(product))

    logger.info("Exported %d product(s) to %s", len(products), output_path)
    return output_path


def export_products_to_excel(products: Sequence[Product], output_path: Path) -> Path:
    """将多个 Product 导出为 Excel 文件。"""
    if not products:
        raise ValueError("no products to export")

    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = "Products"

    header_font = Font(bold=True, size=12)
    header_alignment = Alignment(horizontal="center", vertical="center", wrap_text=True)

    for col_idx, (_, header, width) in enumerate(PRODUCT_COLUMNS, start=1):
        cell = ws.cell(row=1, column=col_idx)
        cell.value = header
        cell.font = header_font
        cell.alignment = header_alignment
        ws.column_dimensions[get_column_letter(col_idx)].width = width

    for row_idx, product in enumerate(products, start=2):
        row_data = product_to_row(product)
        for col_idx, (field_name, _, _) in enumerate(PRODUCT_COLUMNS, start=1):
            cell = ws.cell(row=row_idx, column=col_idx)
            cell.value = row_data.get(field_name, "")
            # 描述列自动换行
            if field_name == "description":
                cell.alignment = Alignment(wrap_text=True, vertical="top")

    # 冻结首行
    ws.freeze_panes = "A2"

    output_path.parent.mkdir(parents=True, exist_ok=True)
    wb.save(output_path)
    logger.info("Exported %d product(s) to %s", len(products), output_path)
    return output_path


class CollectingSink:
    """
    Commit sink that keeps committed products and categories in memory
    until they are exported.
    """

    def __init__(self) -> None:
        self.products: List[Product] = []
        self.categories: List[Category] = []

    def __call__(self, entity: Union[Product, Category]) -> None:
        if isinstance(entity, Product):
            self.products.append(entity)
        elif isinstance(entity, Category):
            self.categories.append(entity)
        else:
            raise TypeError(f"unsupported entity: {type(entity).__name__}")

    def export(self, output_path: Path) -> Path:
        """Write collected products; the format follows the file suffix (.csv / .xlsx)."""
        suffix = output_path.suffix.lower()
        if suffix == ".csv":
            return export_products_to_csv(self.products, output_path)
        if suffix == ".xlsx":
            return export_products_to_excel(self.products, output_path)
        raise ValueError(f"unsupported export format: {suffix or '(none)'}")
