# core/gallery.py

from __future__ import annotations

from typing import Iterable, List, Optional

from catalog_draft_builder.core.product_schema import ImageRef


class GalleryManager:
    """
    Ordered image list plus the primary (main) image.

    The primary image is tracked by value, not by position. Duplicates are
    allowed; removal works on one position at a time.
    """

    def __init__(
        self,
        images: Optional[Iterable[ImageRef]] = None,
        primary: Optional[ImageRef] = None,
    ):
        self._images: List[ImageRef] = list(images or [])
        self._primary: Optional[ImageRef] = primary

    @property
    def images(self) -> List[ImageRef]:
        return list(self._images)

    @property
    def primary(self) -> Optional[ImageRef]:
        return self._primary

    def __len__(self) -> int:
        return len(self._images)

    def __contains__(self, ref: object) -> bool:
        return ref in self._images

    def append(self, ref: ImageRef) -> None:
        self._images.append(ref)
        if self._primary is None:
            self._primary = ref

    def replace_all(self, refs: Iterable[ImageRef]) -> None:
        """Install a new image list; its first image becomes the primary one."""
        self._images = list(refs)
        if self._images:
            self._primary = self._images[0]

    def remove_at(self, index: int) -> ImageRef:
        """
        Remove one image by position and return it.

        Removing the first image when it is the primary promotes the next
        first image. An emptied gallery always clears the primary.
        """
        if index < 0 or index >= len(self._images):
            raise IndexError(f"gallery index {index} out of range (size {len(self._images)})")

        removed = self._images.pop(index)
        if not self._images:
            self._primary = None
        elif index == 0 and removed == self._primary:
            self._primary = self._images[0]
        return removed

    def set_primary(self, ref: ImageRef) -> bool:
        """Make ``ref`` the primary image; ignored unless it is in the gallery."""
        if ref not in self._images:
            return False
        self._primary = ref
        return True
