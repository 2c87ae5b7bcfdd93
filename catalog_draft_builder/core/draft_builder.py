# core/draft_builder.py

from __future__ import annotations

import asyncio
import logging
import re
import uuid
from decimal import Decimal, InvalidOperation
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Sequence, TypeVar, Union

from catalog_draft_builder.config.settings import DEFAULT_CATEGORY, ENRICHMENT_TIMEOUT_SECONDS
from catalog_draft_builder.core import asset_ingestor
from catalog_draft_builder.core.enrichment_client import EnrichmentClient
from catalog_draft_builder.core.errors import (
    EnrichmentError,
    PreconditionError,
    SessionClosedError,
    ValidationError,
)
from catalog_draft_builder.core.gallery import GalleryManager
from catalog_draft_builder.core.product_schema import (
    AttachmentSlot,
    Category,
    CategoryDraft,
    Draft,
    DraftEvent,
    EnrichmentKind,
    ImageRef,
    LoadingState,
    LoadingStatus,
    Product,
    Rating,
)
from catalog_draft_builder.core.text_cleaning import clean_title, parse_keywords

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

Listener = Callable[[DraftEvent], None]
CommitSink = Callable[[Any], None]

COMMITTED = "committed"
CANCELLED = "cancelled"


# === 字段转换 ===

def _coerce_text(value: Any) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError("expected text")
    return value


def _coerce_decimal(value: Any) -> Optional[Decimal]:
    """Accepts numbers and strings like "$1,299.00"; empty means unset."""
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValueError("expected a number")
    if isinstance(value, str):
        value = re.sub(r"[£$€,\s]", "", value)
        if not value:
            return None
    try:
        amount = Decimal(str(value))
    except InvalidOperation:
        raise ValueError("expected a number") from None
    if not amount.is_finite():
        raise ValueError("expected a finite number")
    if amount < 0:
        raise ValueError("must not be negative")
    return amount


def _coerce_count(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValueError("expected a whole number")
    if isinstance(value, str):
        value = value.strip()
        if not re.fullmatch(r"-?\d+", value):
            raise ValueError("expected a whole number")
        count = int(value)
    elif isinstance(value, int):
        count = value
    elif isinstance(value, float) and value.is_integer():
        count = int(value)
    elif isinstance(value, Decimal) and value.is_finite() and value == value.to_integral_value():
        count = int(value)
    else:
        raise ValueError("expected a whole number")
    if count < 0:
        raise ValueError("must not be negative")
    return count


def _new_product_id() -> str:
    return uuid.uuid4().hex


def _new_category_id() -> str:
    return f"cat_{uuid.uuid4().hex[:12]}"


class _AuthoringSession:
    """
    Loading flags, disposal and enrichment dispatch shared by the builders.

    A session is confined to one event loop. Enrichment results that arrive
    after commit/cancel are dropped without touching anything.
    """

    _EDITABLE: Dict[str, Callable[[Any], Any]] = {}

    def __init__(
        self,
        client: EnrichmentClient,
        timeout: Optional[float] = None,
        on_commit: Optional[Iterable[CommitSink]] = None,
    ):
        self._client = client
        self._timeout = ENRICHMENT_TIMEOUT_SECONDS if timeout is None else timeout
        self._loading: Dict[EnrichmentKind, LoadingState] = {
            kind: LoadingState() for kind in EnrichmentKind
        }
        self._listeners: List[Listener] = []
        self._on_commit: List[CommitSink] = list(on_commit or [])
        self._outcome: Optional[str] = None

    # --- state for the presentation layer ---

    @property
    def closed(self) -> bool:
        """True once the session was committed or cancelled."""
        return self._outcome is not None

    @property
    def disposed(self) -> bool:
        return self._outcome == CANCELLED

    @property
    def committed(self) -> bool:
        return self._outcome == COMMITTED

    def loading_state(self, kind: Union[EnrichmentKind, str]) -> LoadingState:
        return self._loading[EnrichmentKind(kind)]

    def is_loading(self, kind: Union[EnrichmentKind, str]) -> bool:
        return self.loading_state(kind).in_flight

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener for loading transitions; returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def add_commit_sink(self, sink: CommitSink) -> None:
        self._on_commit.append(sink)

    def cancel(self) -> None:
        """Discard the draft; later enrichment results are ignored. Terminal."""
        if self.closed:
            return
        self._outcome = CANCELLED
        in_flight = [kind.value for kind, state in self._loading.items() if state.in_flight]
        logger.info(
            "Draft session cancelled%s",
            f" (dropping in-flight: {', '.join(in_flight)})" if in_flight else "",
        )

    # --- internals ---

    def _ensure_open(self) -> None:
        if self._outcome is not None:
            raise SessionClosedError(f"draft session already {self._outcome}")

    def _edit_field(self, target: Any, field_name: str, value: Any) -> None:
        self._ensure_open()
        coerce = self._EDITABLE.get(field_name)
        if coerce is None:
            raise ValidationError(invalid_fields={field_name: "not an editable field"})
        try:
            coerced = coerce(value)
        except ValueError as e:
            raise ValidationError(invalid_fields={field_name: str(e)}) from e
        setattr(target, field_name, coerced)

    def _emit(self, kind: EnrichmentKind, action: str) -> None:
        state = self._loading[kind]
        event = DraftEvent(kind=kind, action=action, status=state.status, error=state.error)
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("Draft listener failed on %s/%s", kind.value, action)

    def _begin(self, kind: EnrichmentKind) -> None:
        self._ensure_open()
        if self._loading[kind].in_flight:
            raise PreconditionError(f"{kind.value} enrichment is already in flight")

    async def _run_enrichment(
        self,
        kind: EnrichmentKind,
        call: Callable[[], Awaitable[T]],
        apply: Callable[[T], R],
    ) -> Optional[R]:
        """
        Idle -> InFlight -> Idle around one backend call.

        ``apply`` runs only when the call succeeded and the session is still
        open; it must validate before it mutates. Failures end up in the
        loading state, never raised.
        """
        state = self._loading[kind]
        state.status = LoadingStatus.IN_FLIGHT
        state.error = None
        logger.info("Dispatching %s enrichment", kind.value)
        self._emit(kind, "dispatched")

        try:
            if self._timeout and self._timeout > 0:
                result = await asyncio.wait_for(call(), self._timeout)
            else:
                result = await call()
            if self.closed:
                logger.info("Dropping %s enrichment result: session %s", kind.value, self._outcome)
                return None
            applied = apply(result)
        except asyncio.CancelledError:
            if not self.closed:
                logger.info("%s enrichment task cancelled", kind.value)
                state.status = LoadingStatus.IDLE
                self._emit(kind, "cancelled")
            raise
        except Exception as e:
            if self.closed:
                logger.info("Dropping %s enrichment failure: session %s (%s)", kind.value, self._outcome, e)
                return None
            if isinstance(e, EnrichmentError):
                error = e
                if error.kind is None:
                    error.kind = kind.value
            elif isinstance(e, asyncio.TimeoutError):
                error = EnrichmentError(
                    f"{kind.value} enrichment timed out after {self._timeout}s", kind=kind.value
                )
                error.__cause__ = e
            else:
                error = EnrichmentError(f"{kind.value} enrichment failed: {e}", kind=kind.value)
                error.__cause__ = e
            logger.warning("%s enrichment rejected: %s", kind.value, error)
            state.status = LoadingStatus.IDLE
            state.error = error
            self._emit(kind, "rejected")
            return None

        state.status = LoadingStatus.IDLE
        logger.info("%s enrichment applied", kind.value)
        self._emit(kind, "resolved")
        return applied

    def _deliver(self, entity: Any) -> None:
        """
        Hand the entity to every sink, then close the session.

        A raising sink leaves the session open so the commit can be retried;
        sinks that ran before it have already seen the entity.
        """
        for sink in list(self._on_commit):
            try:
                sink(entity)
            except Exception:
                logger.exception("Commit sink failed, draft session stays open")
                raise
        self._outcome = COMMITTED


def _checked_image_set(result: Any) -> List[ImageRef]:
    if isinstance(result, (str, bytes)) or not isinstance(result, Sequence):
        raise EnrichmentError("image set must be a list of image references")
    refs = list(result)
    if not refs:
        raise EnrichmentError("backend returned an empty image set")
    for ref in refs:
        if not isinstance(ref, str) or not ref:
            raise EnrichmentError("image set contains an invalid reference")
    return refs


class ProductDraftBuilder(_AuthoringSession):
    """
    Builds one catalog item from manual edits, uploaded files and AI output.

    Manual edits are always allowed, also while an enrichment is in flight.
    When an enrichment result arrives it overwrites the field it targets,
    whatever was typed there in the meantime.
    """

    _EDITABLE = {
        "title": _coerce_text,
        "category": _coerce_text,
        "description": _coerce_text,
        "price": _coerce_decimal,
        "original_price": _coerce_decimal,
        "stock": _coerce_count,
    }

    def __init__(
        self,
        client: EnrichmentClient,
        draft: Optional[Draft] = None,
        timeout: Optional[float] = None,
        on_commit: Optional[Iterable[CommitSink]] = None,
        id_factory: Callable[[], str] = _new_product_id,
    ):
        super().__init__(client, timeout=timeout, on_commit=on_commit)
        self._draft = draft if draft is not None else Draft(category=DEFAULT_CATEGORY)
        primary = self._draft.primary_image
        if primary is None and self._draft.gallery:
            primary = self._draft.gallery[0]
        self._gallery = GalleryManager(self._draft.gallery, primary)
        self._id_factory = id_factory
        self._entity_id: Optional[str] = None
        self._rating = Rating()
        self._sync_gallery()

    @classmethod
    def for_edit(
        cls,
        product: Product,
        client: EnrichmentClient,
        **kwargs: Any,
    ) -> "ProductDraftBuilder":
        """Start a session pre-populated from an existing product; commit keeps its id."""
        draft = Draft(
            title=product.title,
            category=product.category,
            price=product.price,
            original_price=product.original_price,
            description=product.description,
            primary_image=product.image,
            gallery=list(product.images),
            stock=product.stock,
            attachments=dict(product.attachments),
        )
        builder = cls(client, draft=draft, **kwargs)
        builder._entity_id = product.id
        builder._rating = product.rating
        return builder

    @property
    def draft(self) -> Draft:
        return self._draft

    def _sync_gallery(self) -> None:
        self._draft.gallery = self._gallery.images
        self._draft.primary_image = self._gallery.primary

    # --- field edits ---

    def edit(self, field_name: str, value: Any) -> None:
        """Set one field; last write wins. Bad values raise ValidationError and change nothing."""
        self._edit_field(self._draft, field_name, value)

    # --- enrichment ---

    async def request_description(
        self, keywords: Union[str, Sequence[str], None] = ""
    ) -> Optional[str]:
        """
        Ask the backend for a description of the current title/category.

        Returns the new description, or None when the call failed or the
        session closed before it resolved.
        """
        self._ensure_open()
        title = clean_title(self._draft.title)
        if not title:
            raise PreconditionError("a title is required before generating a description")
        self._begin(EnrichmentKind.TEXT)

        category = self._draft.category or "General"
        keyword_list = parse_keywords(keywords)

        def apply(text: Any) -> str:
            if not isinstance(text, str):
                raise EnrichmentError("description must be text")
            self._draft.description = text
            return text

        return await self._run_enrichment(
            EnrichmentKind.TEXT,
            lambda: self._client.generate_description(title, category, keyword_list),
            apply,
        )

    async def request_image_set(self) -> Optional[List[ImageRef]]:
        """Replace the gallery with AI images; the first one becomes the primary image."""
        self._begin(EnrichmentKind.IMAGES)
        category = self._draft.category or "General"

        def apply(result: Any) -> List[ImageRef]:
            refs = _checked_image_set(result)
            self._gallery.replace_all(refs)
            self._sync_gallery()
            return refs

        return await self._run_enrichment(
            EnrichmentKind.IMAGES,
            lambda: self._client.generate_image_set(category),
            apply,
        )

    # --- images ---

    def add_image(self, ref: ImageRef) -> None:
        self._ensure_open()
        if not ref:
            raise ValidationError(invalid_fields={"gallery": "empty image reference"})
        self._gallery.append(ref)
        self._sync_gallery()

    def upload_image(
        self,
        blob: Any,
        mime_type: Optional[str] = None,
        filename: Optional[str] = None,
    ) -> ImageRef:
        """Encode a local file and add it to the gallery. IngestError leaves the draft untouched."""
        self._ensure_open()
        ref = asset_ingestor.ingest(blob, mime_type=mime_type, filename=filename)
        self.add_image(ref)
        return ref

    def remove_image(self, index: int) -> ImageRef:
        self._ensure_open()
        removed = self._gallery.remove_at(index)
        self._sync_gallery()
        return removed

    def set_primary(self, ref: ImageRef) -> bool:
        self._ensure_open()
        changed = self._gallery.set_primary(ref)
        self._sync_gallery()
        return changed

    # --- attachments ---

    def set_attachment(self, slot: Union[AttachmentSlot, str], ref: Optional[ImageRef]) -> None:
        self._ensure_open()
        slot = AttachmentSlot(slot)
        if ref:
            self._draft.attachments[slot] = ref
        else:
            self._draft.attachments.pop(slot, None)

    def upload_attachment(
        self,
        slot: Union[AttachmentSlot, str],
        blob: Any,
        mime_type: Optional[str] = None,
        filename: Optional[str] = None,
    ) -> ImageRef:
        self._ensure_open()
        slot = AttachmentSlot(slot)
        ref = asset_ingestor.ingest(blob, mime_type=mime_type, filename=filename)
        self._draft.attachments[slot] = ref
        return ref

    def clear_attachment(self, slot: Union[AttachmentSlot, str]) -> None:
        self.set_attachment(slot, None)

    # --- finishing ---

    def missing_fields(self) -> List[str]:
        missing = []
        if not clean_title(self._draft.title):
            missing.append("title")
        if not self._draft.price:
            missing.append("price")
        if not self._draft.primary_image:
            missing.append("primary_image")
        return missing

    def commit(self) -> Product:
        """
        Validate and hand the finished product to the commit sinks.

        Raises ValidationError (no state change) when title, price or the
        primary image is missing. If a sink raises, the error propagates and
        the session stays open; a retry reuses the same product id.
        """
        self._ensure_open()
        missing = self.missing_fields()
        if missing:
            logger.warning("Commit rejected, missing: %s", ", ".join(missing))
            raise ValidationError(missing)

        draft = self._draft
        # 重试提交时沿用同一个 id
        if self._entity_id is None:
            self._entity_id = self._id_factory()
        product = Product(
            id=self._entity_id,
            title=clean_title(draft.title),
            category=draft.category or "Uncategorized",
            price=draft.price,
            original_price=draft.original_price or Decimal("0"),
            description=draft.description or "",
            image=draft.primary_image,
            images=tuple(draft.gallery),
            stock=draft.stock or 0,
            attachments=dict(draft.attachments),
            rating=self._rating,
        )
        self._deliver(product)
        logger.info("Committed product %s (%s, %d images)", product.id, product.title, len(product.images))
        return product


class CategoryDraftBuilder(_AuthoringSession):
    """Builds one catalog category: a name, an optional description and one image."""

    _EDITABLE = {
        "name": _coerce_text,
        "description": _coerce_text,
    }

    def __init__(
        self,
        client: EnrichmentClient,
        draft: Optional[CategoryDraft] = None,
        timeout: Optional[float] = None,
        on_commit: Optional[Iterable[CommitSink]] = None,
        id_factory: Callable[[], str] = _new_category_id,
    ):
        super().__init__(client, timeout=timeout, on_commit=on_commit)
        self._draft = draft if draft is not None else CategoryDraft()
        self._id_factory = id_factory
        self._entity_id: Optional[str] = None

    @property
    def draft(self) -> CategoryDraft:
        return self._draft

    def edit(self, field_name: str, value: Any) -> None:
        self._edit_field(self._draft, field_name, value)

    async def request_image(self) -> Optional[ImageRef]:
        """Generate images for the category name and keep the first one."""
        self._ensure_open()
        name = clean_title(self._draft.name)
        if not name:
            raise PreconditionError("a name is required before generating an image")
        self._begin(EnrichmentKind.IMAGES)

        def apply(result: Any) -> ImageRef:
            refs = _checked_image_set(result)
            self._draft.image = refs[0]
            return refs[0]

        return await self._run_enrichment(
            EnrichmentKind.IMAGES,
            lambda: self._client.generate_image_set(name),
            apply,
        )

    def set_image(self, ref: Optional[ImageRef]) -> None:
        self._ensure_open()
        self._draft.image = ref or None

    def upload_image(
        self,
        blob: Any,
        mime_type: Optional[str] = None,
        filename: Optional[str] = None,
    ) -> ImageRef:
        self._ensure_open()
        ref = asset_ingestor.ingest(blob, mime_type=mime_type, filename=filename)
        self._draft.image = ref
        return ref

    def missing_fields(self) -> List[str]:
        missing = []
        if not clean_title(self._draft.name):
            missing.append("name")
        if not self._draft.image:
            missing.append("image")
        return missing

    def commit(self) -> Category:
        self._ensure_open()
        missing = self.missing_fields()
        if missing:
            logger.warning("Category commit rejected, missing: %s", ", ".join(missing))
            raise ValidationError(missing)

        if self._entity_id is None:
            self._entity_id = self._id_factory()
        category = Category(
            id=self._entity_id,
            name=clean_title(self._draft.name),
            image=self._draft.image,
            description=self._draft.description or "",
        )
        self._deliver(category)
        logger.info("Committed category %s (%s)", category.id, category.name)
        return category
