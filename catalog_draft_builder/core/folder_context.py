# core/folder_context.py

from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path
from typing import List, Optional


@dataclass
class FolderContext:
    """A local product folder as found on disk, before it seeds a draft."""

    folder_path: Path
    folder_name: str

    # from the folder name
    category: str = ""
    keywords: str = ""
    title: str = ""
    price: Optional[Decimal] = None

    image_files: List[Path] = field(default_factory=list)
    other_files: List[Path] = field(default_factory=list)

    note_text: str = ""
