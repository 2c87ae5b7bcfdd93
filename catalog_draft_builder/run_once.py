# catalog_draft_builder/run_once.py

from __future__ import annotations

import argparse
import asyncio
import sys
from datetime import datetime
from typing import List, Optional

from catalog_draft_builder.config.logging_config import configure_logging
from catalog_draft_builder.config.settings import ENRICHMENT_BACKEND, EXPORT_DIR
from catalog_draft_builder.core.draft_builder import ProductDraftBuilder
from catalog_draft_builder.core.errors import DraftBuilderError, ValidationError
from catalog_draft_builder.core.exporter import CollectingSink
from catalog_draft_builder.core.product_schema import EnrichmentKind
from catalog_draft_builder.pipeline.drive_import import import_drive_folder
from catalog_draft_builder.pipeline.loader import load_local_folder, seed_product_builder
from catalog_draft_builder.platforms.drive_client import DriveClient
from catalog_draft_builder.platforms.openai_client import build_enrichment_client


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Build one catalog product from a local and/or Drive folder")
    parser.add_argument("folder", nargs="?", help="product folder: {category}-{keywords}-{title}_{price}")
    parser.add_argument("--drive-folder", metavar="ID", help="also add the images of this Google Drive folder")
    parser.add_argument("--title", help="title (overrides the folder name)")
    parser.add_argument("--price", help="price (overrides the folder name)")
    parser.add_argument("--describe", action="store_true", help="generate the description")
    parser.add_argument("--generate-images", action="store_true", help="replace the gallery with AI images")
    parser.add_argument("--backend", default=ENRICHMENT_BACKEND, choices=["mock", "openai"])
    parser.add_argument("--export", default="csv", choices=["csv", "xlsx"])
    args = parser.parse_args(argv)
    if not args.folder and not args.drive_folder:
        parser.error("give a local folder, --drive-folder, or both")
    return args


async def build_product(args: argparse.Namespace, sink: CollectingSink) -> int:
    builder = ProductDraftBuilder(build_enrichment_client(args.backend), on_commit=[sink])

    keywords = ""
    if args.folder:
        ctx = load_local_folder(args.folder)
        print("=" * 60)
        print(f"📂 {ctx.folder_name}: {len(ctx.image_files)} image(s)")
        print("=" * 60)
        keywords = seed_product_builder(builder, ctx)

    if args.drive_folder:
        added = import_drive_folder(builder, DriveClient(), args.drive_folder)
        print(f"☁️  Drive folder {args.drive_folder}: {len(added)} image(s) added")

    if args.title:
        builder.edit("title", args.title)
    if args.price:
        builder.edit("price", args.price)

    requests = []
    if args.describe:
        if builder.draft.title:
            requests.append(builder.request_description(keywords))
        else:
            print("⚠️  No title, skipping the description")
    if args.generate_images:
        requests.append(builder.request_image_set())
    if requests:
        print("🤖 Waiting for enrichment...")
        await asyncio.gather(*requests)
        for kind in EnrichmentKind:
            error = builder.loading_state(kind).error
            if error:
                print(f"⚠️  {kind.value} enrichment failed: {error}")

    try:
        product = builder.commit()
    except ValidationError as e:
        print(f"❌ Draft is not complete: {e}")
        return 1

    print(f"✅ Committed {product.title} ({product.price}), {len(product.images)} image(s)")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging()
    sink = CollectingSink()

    try:
        status = asyncio.run(build_product(args, sink))
    except (DraftBuilderError, FileNotFoundError) as e:
        print(f"❌ {e}")
        return 1

    if sink.products:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        path = sink.export(EXPORT_DIR / f"products_{timestamp}.{args.export}")
        print(f"📋 Exported to {path}")
    return status


if __name__ == "__main__":
    sys.exit(main())
