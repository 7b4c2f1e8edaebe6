"""In-memory document model used by every pdfforge operation.

A :class:`Document` owns an ordered list of :class:`Page` objects, a
:class:`DocumentMetadata` record, a :class:`ResourceTable` arena and an
explicit security state.  Pages never own resources: they hold
:class:`ResourceRef` handles into the arena, so merging or copying documents
moves identifiers around instead of duplicating fonts and images.

Payloads that originate from a parsed file (content streams, resources,
annotation dictionaries) are kept as :mod:`pypdf` objects and treated as
immutable.  Operations add new segments and resources rather than editing
existing ones.
"""

from __future__ import annotations

import itertools
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum, IntFlag
from typing import Any, Iterable, Iterator, Mapping, Sequence, Union

from .errors import IntegrityError

__all__ = [
    "Box",
    "ResourceKind",
    "Resource",
    "ResourceRef",
    "ResourceTable",
    "ContentSegment",
    "Annotation",
    "OutlineEntry",
    "FormDefinition",
    "Page",
    "Permission",
    "Unencrypted",
    "Encrypted",
    "SecurityState",
    "DocumentMetadata",
    "Document",
    "parse_pdf_date",
    "format_pdf_date",
]

Box = tuple[float, float, float, float]

_UID_COUNTER = itertools.count(1)


def _next_uid() -> int:
    return next(_UID_COUNTER)


# -- Resources ---------------------------------------------------------------


class ResourceKind(str, Enum):
    """Named resource categories of a page resource dictionary."""

    FONT = "/Font"
    XOBJECT = "/XObject"
    EXTGSTATE = "/ExtGState"
    COLORSPACE = "/ColorSpace"
    PATTERN = "/Pattern"
    SHADING = "/Shading"
    PROPERTIES = "/Properties"


@dataclass(frozen=True, slots=True)
class Resource:
    """A shared asset stored in the document arena.

    ``payload`` is either an indirect reference into a parsed file or a
    freshly built pypdf dictionary (for example a standard font).
    """

    kind: ResourceKind
    payload: Any = field(compare=False, repr=False)
    label: str | None = None


@dataclass(frozen=True, slots=True)
class ResourceRef:
    """Weak handle from a page into a :class:`ResourceTable`."""

    resource_id: str

    def resolve(self, table: "ResourceTable") -> Resource:
        return table[self.resource_id]


class ResourceTable:
    """Insertion-ordered arena of resources keyed by ``R<n>`` identifiers."""

    def __init__(self) -> None:
        self._entries: dict[str, Resource] = {}
        self._labels: dict[str, str] = {}
        self._counter = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, resource_id: object) -> bool:
        return resource_id in self._entries

    def __getitem__(self, resource_id: str) -> Resource:
        try:
            return self._entries[resource_id]
        except KeyError as exc:
            raise KeyError(f"Unknown resource id {resource_id!r}") from exc

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def items(self) -> Iterable[tuple[str, Resource]]:
        return self._entries.items()

    def ids(self) -> list[str]:
        return list(self._entries)

    def _allocate_id(self) -> str:
        while True:
            self._counter += 1
            candidate = f"R{self._counter}"
            if candidate not in self._entries:
                return candidate

    def add(self, resource: Resource) -> ResourceRef:
        """Store ``resource`` and return a handle to it.

        Labelled resources are stored once: adding a resource whose label is
        already known returns the existing handle.
        """

        if resource.label is not None and resource.label in self._labels:
            return ResourceRef(self._labels[resource.label])
        resource_id = self._allocate_id()
        self._insert(resource_id, resource)
        return ResourceRef(resource_id)

    def _insert(self, resource_id: str, resource: Resource) -> None:
        self._entries[resource_id] = resource
        if resource.label is not None:
            self._labels.setdefault(resource.label, resource_id)

    def find_label(self, label: str) -> ResourceRef | None:
        resource_id = self._labels.get(label)
        return ResourceRef(resource_id) if resource_id is not None else None

    def union(self, other: "ResourceTable") -> dict[str, str]:
        """Append ``other``'s resources, returning the id remapping applied.

        Ids that do not collide are kept.  Colliding ids are reassigned in the
        order they appear in ``other``.  Labelled resources already present
        are reused instead of duplicated.
        """

        mapping: dict[str, str] = {}
        pending: list[tuple[str, Resource]] = []
        for resource_id, resource in other.items():
            if resource.label is not None and resource.label in self._labels:
                mapping[resource_id] = self._labels[resource.label]
            elif resource_id in self._entries:
                pending.append((resource_id, resource))
            else:
                self._insert(resource_id, resource)
                mapping[resource_id] = resource_id
        for resource_id, resource in pending:
            new_id = self._allocate_id()
            self._insert(new_id, resource)
            mapping[resource_id] = new_id
        return mapping

    def copy(self) -> "ResourceTable":
        clone = ResourceTable()
        clone._entries = dict(self._entries)
        clone._labels = dict(self._labels)
        clone._counter = self._counter
        return clone


# -- Page level structures ---------------------------------------------------


@dataclass(frozen=True, slots=True)
class ContentSegment:
    """One content stream of a page.

    Segments read from a file keep a reference to their source stream so the
    encoder can re-emit the original bytes and filters.  New segments carry
    their decoded payload directly.
    """

    payload: bytes = b""
    source: Any = field(default=None, compare=False, repr=False)

    @property
    def data(self) -> bytes:
        if self.source is not None:
            return self.source.get_object().get_data()
        return self.payload

    @property
    def is_new(self) -> bool:
        return self.source is None


@dataclass(slots=True)
class Annotation:
    """Annotation or form widget attached to a page."""

    subtype: str
    rect: Box
    flags: int = 0
    payload: Any = field(default=None, repr=False)
    target_uid: int | None = None
    target_fit: tuple[Any, ...] = ()

    HIDDEN = 1 << 1
    NO_VIEW = 1 << 5

    @property
    def is_widget(self) -> bool:
        return self.subtype == "/Widget"

    @property
    def is_internal_link(self) -> bool:
        return self.target_uid is not None

    @property
    def is_visible(self) -> bool:
        return not self.flags & (self.HIDDEN | self.NO_VIEW)

    def copy(self) -> "Annotation":
        return Annotation(
            subtype=self.subtype,
            rect=self.rect,
            flags=self.flags,
            payload=self.payload,
            target_uid=self.target_uid,
            target_fit=self.target_fit,
        )


@dataclass(slots=True)
class OutlineEntry:
    title: str
    target_uid: int | None = None
    children: list["OutlineEntry"] = field(default_factory=list)

    def copy(self) -> "OutlineEntry":
        return OutlineEntry(self.title, self.target_uid, [child.copy() for child in self.children])

    def walk(self) -> Iterator["OutlineEntry"]:
        yield self
        for child in self.children:
            yield from child.walk()


@dataclass(slots=True)
class FormDefinition:
    """Interactive form payload: root fields plus the remaining AcroForm keys."""

    fields: list[Any] = field(default_factory=list)
    entries: dict[str, Any] = field(default_factory=dict)

    def copy(self) -> "FormDefinition":
        return FormDefinition(list(self.fields), dict(self.entries))


def _normalize_rotation(angle: int) -> int:
    if isinstance(angle, bool) or not isinstance(angle, int):
        raise TypeError(f"rotation must be an integer, got {angle!r}")
    if angle % 90:
        raise ValueError(f"rotation must be a multiple of 90, got {angle}")
    return angle % 360


@dataclass(slots=True)
class Page:
    media_box: Box
    rotation: int = 0
    crop_box: Box | None = None
    contents: list[ContentSegment] = field(default_factory=list)
    resources: dict[ResourceKind, dict[str, ResourceRef]] = field(default_factory=dict)
    resource_extras: dict[str, Any] = field(default_factory=dict)
    annotations: list[Annotation] = field(default_factory=list)
    attributes: dict[str, Any] = field(default_factory=dict)
    uid: int = field(default_factory=_next_uid)

    def __setattr__(self, name: str, value: Any) -> None:
        if name == "rotation":
            value = _normalize_rotation(value)
        object.__setattr__(self, name, value)

    @property
    def visible_box(self) -> Box:
        return self.crop_box if self.crop_box is not None else self.media_box

    @property
    def width(self) -> float:
        x0, _, x1, _ = self.visible_box
        return abs(x1 - x0)

    @property
    def height(self) -> float:
        _, y0, _, y1 = self.visible_box
        return abs(y1 - y0)

    @property
    def display_size(self) -> tuple[float, float]:
        """Width and height as shown by a viewer, honouring ``rotation``."""

        if self.rotation in (90, 270):
            return self.height, self.width
        return self.width, self.height

    def resource_refs(self) -> Iterator[tuple[ResourceKind, str, ResourceRef]]:
        for kind, entries in self.resources.items():
            for name, ref in entries.items():
                yield kind, name, ref

    def add_resource(self, kind: ResourceKind, ref: ResourceRef, *, prefix: str) -> str:
        """Bind ``ref`` under a fresh name in this page's resource dictionary."""

        entries = self.resources.setdefault(kind, {})
        for name, existing in entries.items():
            if existing == ref:
                return name
        for counter in itertools.count(1):
            name = f"{prefix}{counter}"
            if name not in entries:
                entries[name] = ref
                return name
        raise AssertionError("unreachable")

    def remap_resources(self, mapping: Mapping[str, str]) -> None:
        self.resources = {
            kind: {name: ResourceRef(mapping.get(ref.resource_id, ref.resource_id)) for name, ref in entries.items()}
            for kind, entries in self.resources.items()
        }

    def copy(self, *, keep_uid: bool = True) -> "Page":
        return Page(
            media_box=self.media_box,
            rotation=self.rotation,
            crop_box=self.crop_box,
            contents=list(self.contents),
            resources={kind: dict(entries) for kind, entries in self.resources.items()},
            resource_extras=dict(self.resource_extras),
            annotations=[annotation.copy() for annotation in self.annotations],
            attributes=dict(self.attributes),
            uid=self.uid if keep_uid else _next_uid(),
        )


# -- Security ----------------------------------------------------------------


class Permission(IntFlag):
    """User access permissions of the standard security handler."""

    NONE = 0
    PRINT = 1 << 2
    MODIFY = 1 << 3
    COPY = 1 << 4
    ANNOTATE = 1 << 5
    FILL_FORMS = 1 << 8
    EXTRACT_ACCESSIBILITY = 1 << 9
    ASSEMBLE = 1 << 10
    PRINT_HIGH_QUALITY = 1 << 11

    @classmethod
    def all(cls) -> "Permission":
        value = cls.NONE
        for member in cls:
            value |= member
        return value

    @classmethod
    def from_p_value(cls, value: int) -> "Permission":
        return cls(value & int(cls.all()))

    def to_p_value(self) -> int:
        """Return the signed 32-bit ``/P`` value with reserved bits set."""

        raw = (int(self) | 0xFFFFF0C0) & 0xFFFFFFFF
        return raw - (1 << 32) if raw & 0x80000000 else raw

    @classmethod
    def parse(cls, names: Iterable[str]) -> "Permission":
        value = cls.NONE
        for name in names:
            key = name.strip().upper().replace("-", "_")
            try:
                value |= cls[key]
            except KeyError as exc:
                raise ValueError(f"Unknown permission {name!r}") from exc
        return value

    def names(self) -> list[str]:
        return [member.name.lower() for member in type(self) if member and member in self]


@dataclass(frozen=True, slots=True)
class Unencrypted:
    @property
    def is_encrypted(self) -> bool:
        return False


@dataclass(frozen=True, slots=True)
class Encrypted:
    """Encrypted state together with the key material needed to re-encrypt.

    ``user_password`` is ``None`` when the document was opened with its owner
    password and the user password could not be recovered; such a document
    can be unlocked but not re-encrypted.
    """

    user_password: str | None
    owner_password: str | None = field(default=None, repr=False)
    permissions: Permission = Permission.all()
    algorithm: str = "RC4-128"

    def __post_init__(self) -> None:
        if self.user_password is not None and not isinstance(self.user_password, str):
            raise TypeError("Encrypted state requires a user password string")

    @property
    def is_encrypted(self) -> bool:
        return True

    def __repr__(self) -> str:
        return f"Encrypted(algorithm={self.algorithm!r}, permissions={self.permissions!r})"


SecurityState = Union[Unencrypted, Encrypted]


# -- Metadata ----------------------------------------------------------------


_PDF_DATE = re.compile(
    r"^(?:D:)?(?P<year>\d{4})(?P<month>\d{2})?(?P<day>\d{2})?(?P<hour>\d{2})?(?P<minute>\d{2})?"
    r"(?P<second>\d{2})?(?P<tz>[Zz]|[+-]\d{2}'?(?:\d{2}'?)?)?"
)


def parse_pdf_date(value: str) -> datetime | None:
    """Parse a ``D:YYYYMMDDHHmmSSOHH'mm'`` string into an aware datetime."""

    match = _PDF_DATE.match(value.strip())
    if match is None:
        return None
    parts = match.groupdict()
    tz_text = parts.get("tz")
    tzinfo = timezone.utc
    if tz_text and tz_text not in ("Z", "z"):
        sign = -1 if tz_text[0] == "-" else 1
        digits = tz_text[1:].replace("'", "")
        hours = int(digits[:2])
        minutes = int(digits[2:4]) if len(digits) >= 4 else 0
        tzinfo = timezone(sign * timedelta(hours=hours, minutes=minutes))
    try:
        return datetime(
            int(parts["year"]),
            int(parts["month"] or 1),
            int(parts["day"] or 1),
            int(parts["hour"] or 0),
            int(parts["minute"] or 0),
            int(parts["second"] or 0),
            tzinfo=tzinfo,
        )
    except ValueError:
        return None


def format_pdf_date(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    offset = value.utcoffset() or timedelta(0)
    if not offset:
        suffix = "Z"
    else:
        total = int(offset.total_seconds() // 60)
        sign = "+" if total > 0 else "-"
        hours, minutes = divmod(abs(total), 60)
        suffix = f"{sign}{hours:02d}'{minutes:02d}'"
    return value.strftime("D:%Y%m%d%H%M%S") + suffix


_INFO_KEYS = {
    "title": "/Title",
    "author": "/Author",
    "subject": "/Subject",
    "keywords": "/Keywords",
    "creator": "/Creator",
    "producer": "/Producer",
    "created": "/CreationDate",
    "modified": "/ModDate",
}
_DATE_FIELDS = {"created", "modified"}


@dataclass(slots=True)
class DocumentMetadata:
    title: str | None = None
    author: str | None = None
    subject: str | None = None
    keywords: str | None = None
    creator: str | None = None
    producer: str | None = None
    created: datetime | None = None
    modified: datetime | None = None
    extra: dict[str, str] = field(default_factory=dict)

    FIELDS = tuple(_INFO_KEYS)

    @classmethod
    def from_info(cls, info: Mapping[str, Any] | None) -> "DocumentMetadata":
        """Build metadata from a ``/Info``-style mapping of plain strings."""

        metadata = cls()
        if not info:
            return metadata
        reverse = {key: name for name, key in _INFO_KEYS.items()}
        for key, value in info.items():
            key = str(key)
            text = str(value)
            name = reverse.get(key)
            if name is None:
                metadata.extra[key.lstrip("/")] = text
            elif name in _DATE_FIELDS:
                parsed = parse_pdf_date(text)
                if parsed is None:
                    metadata.extra[key.lstrip("/")] = text
                else:
                    setattr(metadata, name, parsed)
            else:
                setattr(metadata, name, text)
        return metadata

    def to_info(self) -> dict[str, str]:
        info: dict[str, str] = {}
        for name, key in _INFO_KEYS.items():
            value = getattr(self, name)
            if value is None:
                continue
            info[key] = format_pdf_date(value) if name in _DATE_FIELDS else str(value)
        for key, value in self.extra.items():
            info.setdefault("/" + key.lstrip("/"), value)
        return info

    def get(self, name: str) -> Any:
        if name in _INFO_KEYS:
            return getattr(self, name)
        return self.extra.get(name.lstrip("/"))

    def set(self, name: str, value: Any) -> None:
        if name in _INFO_KEYS:
            if name in _DATE_FIELDS and value is not None and not isinstance(value, datetime):
                raise TypeError(f"{name} must be a datetime")
            if name not in _DATE_FIELDS and value is not None:
                value = str(value)
            setattr(self, name, value)
            return
        key = name.lstrip("/")
        if not key:
            raise ValueError("metadata key must not be empty")
        if value is None:
            self.extra.pop(key, None)
        else:
            self.extra[key] = str(value)

    def as_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        for name in _INFO_KEYS:
            value = getattr(self, name)
            if value is not None:
                data[name] = value.isoformat() if isinstance(value, datetime) else value
        if self.extra:
            data["custom"] = dict(self.extra)
        return data

    def copy(self) -> "DocumentMetadata":
        clone = DocumentMetadata(**{name: getattr(self, name) for name in _INFO_KEYS})
        clone.extra = dict(self.extra)
        return clone


# -- Document ----------------------------------------------------------------


def _check_index(index: int, count: int) -> None:
    if isinstance(index, bool) or not isinstance(index, int):
        raise TypeError(f"page index must be an integer, got {index!r}")
    if index < 0 or index >= count:
        raise IndexError(f"page index {index} out of range [0, {count})")


@dataclass(slots=True)
class Document:
    pages: list[Page] = field(default_factory=list)
    metadata: DocumentMetadata = field(default_factory=DocumentMetadata)
    resources: ResourceTable = field(default_factory=ResourceTable)
    security: SecurityState = field(default_factory=Unencrypted)
    outline: list[OutlineEntry] = field(default_factory=list)
    form: FormDefinition | None = None
    catalog_extras: dict[str, Any] = field(default_factory=dict)
    version: str = "1.7"
    recovered: bool = False

    @property
    def page_count(self) -> int:
        return len(self.pages)

    @property
    def is_encrypted(self) -> bool:
        return self.security.is_encrypted

    def page(self, index: int) -> Page:
        _check_index(index, len(self.pages))
        return self.pages[index]

    def index_of(self, uid: int) -> int | None:
        for index, page in enumerate(self.pages):
            if page.uid == uid:
                return index
        return None

    # -- Mutators ------------------------------------------------------------

    def insert_page(self, index: int, page: Page) -> None:
        """Insert ``page`` before ``index``; ``index == page_count`` appends."""

        if index != len(self.pages):
            _check_index(index, len(self.pages))
        missing = [ref.resource_id for _, _, ref in page.resource_refs() if ref.resource_id not in self.resources]
        if missing:
            raise IntegrityError(f"page references unknown resource(s): {', '.join(missing)}")
        if any(existing.uid == page.uid for existing in self.pages):
            page.uid = _next_uid()
        self.pages.insert(index, page)

    def remove_page(self, index: int) -> Page:
        _check_index(index, len(self.pages))
        return self.pages.pop(index)

    def reorder(self, order: Sequence[int]) -> None:
        """Rearrange pages so that new position ``i`` holds old page ``order[i]``."""

        count = len(self.pages)
        for index in order:
            _check_index(index, count)
        if len(order) != count or len(set(order)) != count:
            raise ValueError("order must be a permutation of every page index")
        self.pages = [self.pages[index] for index in order]

    def set_rotation(self, index: int, angle: int) -> None:
        self.page(index).rotation = angle

    def rotate_page(self, index: int, delta: int) -> int:
        page = self.page(index)
        page.rotation = page.rotation + _normalize_rotation(delta)
        return page.rotation

    def get_metadata_field(self, name: str) -> Any:
        return self.metadata.get(name)

    def set_metadata_field(self, name: str, value: Any) -> None:
        self.metadata.set(name, value)

    def append_document(self, other: "Document", *, outline_title: str | None = None) -> dict[int, int]:
        """Concatenate ``other``'s pages after this document's pages.

        Resources are unioned with deterministic id remapping.  Page uids that
        collide with pages already present are reassigned and internal link
        and outline targets follow them.  Returns the uid remapping.
        """

        mapping = self.resources.union(other.resources)
        taken = {page.uid for page in self.pages}
        uid_map: dict[int, int] = {}
        appended: list[Page] = []
        for source in other.pages:
            page = source.copy()
            if page.uid in taken:
                page.uid = _next_uid()
            uid_map[source.uid] = page.uid
            taken.add(page.uid)
            page.remap_resources(mapping)
            appended.append(page)

        for page in appended:
            for annotation in page.annotations:
                if annotation.target_uid is not None:
                    annotation.target_uid = uid_map.get(annotation.target_uid)
        self.pages.extend(appended)

        entries = [entry.copy() for entry in other.outline]
        for entry in entries:
            for node in entry.walk():
                if node.target_uid is not None:
                    node.target_uid = uid_map.get(node.target_uid)
        if outline_title is not None:
            first = appended[0].uid if appended else None
            self.outline.append(OutlineEntry(outline_title, first, entries))
        else:
            self.outline.extend(entries)

        if other.form is not None:
            if self.form is None:
                self.form = other.form.copy()
            else:
                self.form.fields.extend(other.form.fields)
                for key, value in other.form.entries.items():
                    self.form.entries.setdefault(key, value)
        return uid_map

    # -- Integrity -----------------------------------------------------------

    def check_integrity(self) -> None:
        """Verify page uniqueness, rotation normalization and resource references."""

        seen: set[int] = set()
        for index, page in enumerate(self.pages):
            if page.uid in seen:
                raise IntegrityError(f"page {index} duplicates page uid {page.uid}")
            seen.add(page.uid)
            if page.rotation not in (0, 90, 180, 270):
                raise IntegrityError(f"page {index} has unnormalized rotation {page.rotation}")
            for kind, name, ref in page.resource_refs():
                if ref.resource_id not in self.resources:
                    raise IntegrityError(
                        f"page {index} resource {kind.value}/{name} references missing resource {ref.resource_id}"
                    )

    def copy(self) -> "Document":
        """Structural copy: new page shells, shared immutable payloads."""

        return Document(
            pages=[page.copy() for page in self.pages],
            metadata=self.metadata.copy(),
            resources=self.resources.copy(),
            security=self.security,
            outline=[entry.copy() for entry in self.outline],
            form=self.form.copy() if self.form is not None else None,
            catalog_extras=dict(self.catalog_extras),
            version=self.version,
            recovered=self.recovered,
        )
