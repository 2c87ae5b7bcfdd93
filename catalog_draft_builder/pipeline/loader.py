# pipeline/loader.py

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Union

from catalog_draft_builder.core.draft_builder import ProductDraftBuilder
from catalog_draft_builder.core.errors import IngestError, ValidationError
from catalog_draft_builder.core.folder_context import FolderContext
from catalog_draft_builder.core.folder_utils import parse_folder_name

logger = logging.getLogger(__name__)

IMAGE_SUFFIXES = {".jpg", ".jpeg", ".png", ".gif", ".webp"}
NOTE_FILE_NAMES = {"note.txt", "notes.txt", "note"}


def classify_files(files: List[Path]) -> tuple[List[Path], List[Path]]:
    """按扩展名把文件分成图片 / 其他"""
    images: List[Path] = []
    others: List[Path] = []
    for f in files:
        if f.suffix.lower() in IMAGE_SUFFIXES:
            images.append(f)
        else:
            others.append(f)
    return images, others


def load_local_folder(folder: Union[str, Path]) -> FolderContext:
    """
    Read a local product folder: parse its name, list its images (sorted by
    file name) and pick up note.txt when present.
    """
    folder = Path(folder)
    if not folder.is_dir():
        raise FileNotFoundError(f"not a folder: {folder}")

    files = sorted((f for f in folder.iterdir() if f.is_file()), key=lambda p: p.name.lower())
    image_files, other_files = classify_files(files)

    note_text = ""
    for f in other_files:
        if f.name.lower() in NOTE_FILE_NAMES:
            try:
                note_text = f.read_text(encoding="utf-8").strip()
            except (OSError, UnicodeDecodeError) as e:
                logger.warning("Could not read %s: %s", f, e)
            break

    parsed = parse_folder_name(folder.name)
    return FolderContext(
        folder_path=folder,
        folder_name=folder.name,
        category=parsed.category,
        keywords=parsed.keywords,
        title=parsed.title,
        price=parsed.price,
        image_files=image_files,
        other_files=other_files,
        note_text=note_text,
    )


def seed_product_builder(builder: ProductDraftBuilder, ctx: FolderContext) -> str:
    """
    Copy what the folder tells us into the draft and upload its images.

    Images that cannot be read are logged and skipped. Returns the keyword
    string to use for a description request.
    """
    if ctx.title:
        builder.edit("title", ctx.title)
    if ctx.category:
        builder.edit("category", ctx.category)
    if ctx.price is not None:
        try:
            builder.edit("price", ctx.price)
        except ValidationError as e:
            logger.warning("Ignoring price from folder name %s: %s", ctx.folder_name, e)
    if ctx.note_text and not builder.draft.description:
        builder.edit("description", ctx.note_text)

    for image_path in ctx.image_files:
        try:
            with image_path.open("rb") as f:
                builder.upload_image(f, filename=image_path.name)
        except (OSError, IngestError) as e:
            logger.warning("Skipping image %s: %s", image_path, e)

    logger.info(
        "Seeded draft from %s: %d image(s), title=%r",
        ctx.folder_name,
        len(builder.draft.gallery),
        builder.draft.title,
    )
    return ctx.keywords
