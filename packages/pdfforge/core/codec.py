"""Binary codec translating PDF bytes to and from the document model.

Decoding validates the header, detects truncation and checks the
cross-reference structure before handing the bytes to :class:`pypdf.PdfReader`.
A structure that does not hold up is rebuilt from a linear object scan and the
resulting document is flagged ``recovered``.

Encoding builds a fresh :class:`pypdf.PdfWriter`.  Every arena resource that a
page references is materialized once, so resources shared between pages stay
shared in the output.  Untouched content streams are cloned from their source
objects; new segments are written as new streams.

Object numbers are reassigned on every encode and structures without a model
counterpart (page labels, name trees, the structure tree, article threads) are
not carried over, so ``encode(decode(data)) == data`` does not hold.  Page
count, order, geometry, rotation and metadata do round-trip.
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from io import BytesIO
from typing import Any, Iterable

from pypdf import PageObject, PasswordType, PdfReader, PdfWriter
from pypdf.errors import (
    DependencyError,
    FileNotDecryptedError,
    PyPdfError,
)
from pypdf.generic import (
    ArrayObject,
    DecodedStreamObject,
    DictionaryObject,
    IndirectObject,
    NameObject,
    NumberObject,
    RectangleObject,
    StreamObject,
)

from .errors import EncryptionError, FormatError, PdfForgeError
from .model import (
    Annotation,
    Box,
    ContentSegment,
    Document,
    DocumentMetadata,
    Encrypted,
    FormDefinition,
    OutlineEntry,
    Page,
    Permission,
    Resource,
    ResourceKind,
    ResourceRef,
    ResourceTable,
    SecurityState,
    Unencrypted,
)
from .recovery import (
    count_pages_hint,
    cross_reference_is_consistent,
    detect_version,
    is_truncated,
    rebuild_cross_reference,
    trailer_hints,
)
from .utils import get_logger, version_key

__all__ = ["PdfCodec", "ProbeResult", "decode", "encode", "probe"]

LOGGER = get_logger("pdfforge.codec")

DEFAULT_MEDIA_BOX: Box = (0.0, 0.0, 612.0, 792.0)

_PAGE_STRUCTURAL_KEYS = frozenset(
    {
        "/Type",
        "/Parent",
        "/Contents",
        "/Resources",
        "/MediaBox",
        "/CropBox",
        "/Rotate",
        "/Annots",
        "/B",
        "/StructParents",
    }
)
_CATALOG_EXTRA_KEYS = ("/PageLayout", "/PageMode", "/Lang", "/ViewerPreferences", "/MarkInfo")

# Errors pypdf (and malformed object graphs) raise while walking a document.
_STRUCTURE_ERRORS = (PyPdfError, KeyError, ValueError, TypeError, AttributeError, IndexError, RecursionError)

_ALGORITHM_VERSIONS = {
    "RC4-40": "1.1",
    "RC4-128": "1.4",
    "AES-128": "1.6",
    "AES-256-R5": "1.7",
    "AES-256": "2.0",
}


@dataclass(frozen=True, slots=True)
class ProbeResult:
    """Header and trailer facts readable without decrypting the document."""

    version: str
    encrypted: bool
    algorithm: str | None
    size: int
    page_count: int | None


def _resolve(value: Any) -> Any:
    if isinstance(value, IndirectObject):
        return value.get_object()
    return value


def _as_box(value: Any) -> Box | None:
    value = _resolve(value)
    if not isinstance(value, (list, tuple)) or len(value) != 4:
        return None
    try:
        x0, y0, x1, y1 = (float(_resolve(item)) for item in value)
    except (TypeError, ValueError):
        return None
    return min(x0, x1), min(y0, y1), max(x0, x1), max(y0, y1)


def _source_key(payload: Any) -> tuple[int, int, int] | None:
    if isinstance(payload, IndirectObject):
        return id(payload.pdf), payload.idnum, payload.generation
    return None


def detect_algorithm(encrypt: DictionaryObject) -> str:
    """Name the standard security handler variant described by ``/Encrypt``."""

    version = int(_resolve(encrypt.get("/V", 0)))
    revision = int(_resolve(encrypt.get("/R", 0)))
    if version == 1:
        return "RC4-40"
    if version == 2:
        length = int(_resolve(encrypt.get("/Length", 40)))
        return "RC4-40" if length <= 40 else "RC4-128"
    if version == 4:
        filters = _resolve(encrypt.get("/CF"))
        std = _resolve(filters.get("/StdCF")) if isinstance(filters, DictionaryObject) else None
        method = _resolve(std.get("/CFM")) if isinstance(std, DictionaryObject) else None
        return "AES-128" if method == "/AESV2" else "RC4-128"
    if version == 5:
        return "AES-256-R5" if revision == 5 else "AES-256"
    raise EncryptionError(f"Unsupported encryption handler version {version}", reason=EncryptionError.UNSUPPORTED)


class PdfCodec:
    """Decode PDF bytes into :class:`Document` models and encode them back."""

    def __init__(self, *, compress_streams: bool = True) -> None:
        self.compress_streams = compress_streams

    # -- Probe ---------------------------------------------------------------

    def probe(self, data: bytes) -> ProbeResult:
        version = detect_version(data)
        hints = trailer_hints(data)
        encrypted = "Encrypt" in hints
        algorithm: str | None = None
        try:
            reader = PdfReader(BytesIO(data), strict=False)
            encrypted = reader.is_encrypted
            if encrypted:
                algorithm = detect_algorithm(reader.trailer["/Encrypt"].get_object())
        except (PdfForgeError, NotImplementedError, *_STRUCTURE_ERRORS) as exc:
            LOGGER.debug("Probe could not open document: %s", exc)
        return ProbeResult(
            version=version,
            encrypted=encrypted,
            algorithm=algorithm,
            size=len(data),
            page_count=count_pages_hint(data),
        )

    # -- Decode --------------------------------------------------------------

    def decode(self, data: bytes, *, password: str | None = None) -> Document:
        version = detect_version(data)
        if is_truncated(data):
            raise FormatError("Input is truncated: final object is incomplete and %%EOF is missing")

        recovered = False
        if not cross_reference_is_consistent(data):
            LOGGER.warning("Cross-reference structure is damaged; scanning objects")
            data = rebuild_cross_reference(data)
            recovered = True

        try:
            document = self._decode_bytes(data, password=password)
        except FormatError:
            if recovered:
                raise
            LOGGER.warning("Decoding failed; retrying with a rebuilt cross-reference table")
            document = self._decode_bytes(rebuild_cross_reference(data), password=password)
            recovered = True

        if recovered:
            declared = count_pages_hint(data)
            if declared is not None and document.page_count < declared:
                raise FormatError(
                    f"Input is truncated: page tree declares {declared} page(s) but only "
                    f"{document.page_count} could be recovered"
                )

        document.version = version
        document.recovered = recovered
        LOGGER.debug(
            "Decoded PDF %s with %d page(s)%s", version, document.page_count, " (recovered)" if recovered else ""
        )
        return document

    def _decode_bytes(self, data: bytes, *, password: str | None) -> Document:
        try:
            reader = PdfReader(BytesIO(data), strict=False)
        except NotImplementedError as exc:
            raise EncryptionError(str(exc), reason=EncryptionError.UNSUPPORTED) from exc
        except _STRUCTURE_ERRORS as exc:
            raise FormatError(f"Unable to parse PDF: {exc}") from exc

        security = self._unlock(reader, password)
        try:
            return self._build_document(reader, security)
        except FileNotDecryptedError as exc:
            raise EncryptionError(str(exc), reason=EncryptionError.MISSING_CREDENTIAL) from exc
        except DependencyError as exc:
            raise EncryptionError(str(exc), reason=EncryptionError.UNSUPPORTED) from exc
        except _STRUCTURE_ERRORS as exc:
            raise FormatError(f"Unresolvable object reference: {exc}") from exc

    def _unlock(self, reader: PdfReader, password: str | None) -> SecurityState:
        if not reader.is_encrypted:
            if password:
                LOGGER.debug("Password %s supplied for an unencrypted document; ignoring", "<provided>")
            return Unencrypted()

        encrypt = reader.trailer["/Encrypt"].get_object()
        algorithm = detect_algorithm(encrypt)
        permissions = Permission.from_p_value(int(_resolve(encrypt.get("/P", -1))))
        try:
            empty = reader.decrypt("")
            result = empty if password is None else reader.decrypt(password)
        except (DependencyError, NotImplementedError) as exc:
            raise EncryptionError(str(exc), reason=EncryptionError.UNSUPPORTED) from exc

        if result == PasswordType.NOT_DECRYPTED:
            if password is None:
                raise EncryptionError(reason=EncryptionError.MISSING_CREDENTIAL)
            raise EncryptionError("Supplied password does not open the document", reason=EncryptionError.INVALID_CREDENTIAL)
        LOGGER.debug("Decrypted %s document with password %s", algorithm, "<provided>" if password else "<empty>")
        credential = password or ""
        if result == PasswordType.USER_PASSWORD:
            return Encrypted(credential, None, permissions, algorithm)
        # Opened with the owner password: the user password is only known when it is empty.
        user = "" if empty != PasswordType.NOT_DECRYPTED else None
        return Encrypted(user, credential, permissions, algorithm)

    def _build_document(self, reader: PdfReader, security: SecurityState) -> Document:
        table = ResourceTable()
        cache: dict[tuple[Any, ...], ResourceRef] = {}
        sources = list(reader.pages)
        pages: list[Page] = []
        uid_by_object: dict[int, int] = {}
        for index, source in enumerate(sources):
            page = self._decode_page(source, table, cache)
            pages.append(page)
            if source.indirect_reference is not None:
                uid_by_object[source.indirect_reference.idnum] = page.uid
            LOGGER.debug("Decoded page %d (%d content segment(s))", index, len(page.contents))

        named = self._named_destinations(reader)
        for page, source in zip(pages, sources):
            page.annotations = self._decode_annotations(source, uid_by_object, named)

        root = reader.trailer["/Root"].get_object()
        return Document(
            pages=pages,
            metadata=self._decode_metadata(reader),
            resources=table,
            security=security,
            outline=self._decode_outline(reader, pages),
            form=self._decode_form(root),
            catalog_extras={key: root.raw_get(key) for key in _CATALOG_EXTRA_KEYS if key in root},
        )

    def _decode_page(self, source: PageObject, table: ResourceTable, cache: dict[tuple[Any, ...], ResourceRef]) -> Page:
        media_box = _as_box(source.get("/MediaBox"))
        if media_box is None:
            LOGGER.warning("Page without a usable /MediaBox; assuming US Letter")
            media_box = DEFAULT_MEDIA_BOX
        rotation = int(_resolve(source.get("/Rotate", 0)) or 0)
        if rotation % 90:
            LOGGER.warning("Ignoring invalid page rotation %s", rotation)
            rotation = 0

        resources, extras = self._decode_resources(source, table, cache)
        return Page(
            media_box=media_box,
            rotation=rotation,
            crop_box=_as_box(source.get("/CropBox")),
            contents=self._decode_contents(source),
            resources=resources,
            resource_extras=extras,
            attributes={key: source.raw_get(key) for key in source if key not in _PAGE_STRUCTURAL_KEYS},
        )

    @staticmethod
    def _decode_contents(source: PageObject) -> list[ContentSegment]:
        raw = source.raw_get("/Contents") if "/Contents" in source else None
        if raw is None:
            return []
        resolved = _resolve(raw)
        items = list(resolved) if isinstance(resolved, ArrayObject) else [raw]
        segments = []
        for item in items:
            if isinstance(item, IndirectObject) and isinstance(item.get_object(), StreamObject):
                segments.append(ContentSegment(source=item))
            else:
                LOGGER.warning("Skipping content entry that is not an indirect stream")
        return segments

    @staticmethod
    def _decode_resources(
        source: PageObject, table: ResourceTable, cache: dict[tuple[Any, ...], ResourceRef]
    ) -> tuple[dict[ResourceKind, dict[str, ResourceRef]], dict[str, Any]]:
        raw = _resolve(source.raw_get("/Resources")) if "/Resources" in source else None
        if not isinstance(raw, DictionaryObject):
            return {}, {}
        resources: dict[ResourceKind, dict[str, ResourceRef]] = {}
        extras: dict[str, Any] = {}
        for key in raw:
            value = raw.raw_get(key)
            try:
                kind = ResourceKind(key)
            except ValueError:
                extras[key] = value
                continue
            entries = _resolve(value)
            if not isinstance(entries, DictionaryObject):
                continue
            bucket: dict[str, ResourceRef] = {}
            for name in entries:
                item = entries.raw_get(name)
                cache_key = (kind, *_source_key(item)) if isinstance(item, IndirectObject) else None
                ref = cache.get(cache_key) if cache_key is not None else None
                if ref is None:
                    ref = table.add(Resource(kind, item))
                    if cache_key is not None:
                        cache[cache_key] = ref
                bucket[str(name)[1:]] = ref
            resources[kind] = bucket
        return resources, extras

    @staticmethod
    def _named_destinations(reader: PdfReader) -> dict[str, Any]:
        try:
            return dict(reader.named_destinations)
        except _STRUCTURE_ERRORS as exc:
            LOGGER.warning("Ignoring unreadable named destinations: %s", exc)
            return {}

    def _decode_annotations(
        self, source: PageObject, uid_by_object: dict[int, int], named: dict[str, Any]
    ) -> list[Annotation]:
        raw = _resolve(source.raw_get("/Annots")) if "/Annots" in source else None
        if not isinstance(raw, ArrayObject):
            return []
        annotations = []
        for item in raw:
            obj = _resolve(item)
            if not isinstance(obj, DictionaryObject):
                continue
            annotation = Annotation(
                subtype=str(_resolve(obj.get("/Subtype", ""))),
                rect=_as_box(obj.get("/Rect")) or (0.0, 0.0, 0.0, 0.0),
                flags=int(_resolve(obj.get("/F", 0)) or 0),
                payload=item,
            )
            if annotation.subtype == "/Link":
                target = self._link_target(obj, uid_by_object, named)
                if target is not None:
                    annotation.target_uid, annotation.target_fit = target
            annotations.append(annotation)
        return annotations

    @staticmethod
    def _link_target(
        link: DictionaryObject, uid_by_object: dict[int, int], named: dict[str, Any]
    ) -> tuple[int, tuple[Any, ...]] | None:
        dest = _resolve(link.get("/Dest"))
        if dest is None:
            action = _resolve(link.get("/A"))
            if not isinstance(action, DictionaryObject) or _resolve(action.get("/S")) != "/GoTo":
                return None
            dest = _resolve(action.get("/D"))
        if isinstance(dest, str):
            destination = named.get(str(dest))
            if destination is None:
                return None
            dest = destination.dest_array
        if not isinstance(dest, ArrayObject) or not dest:
            return None
        page_ref = dest[0]
        if not isinstance(page_ref, IndirectObject):
            return None
        uid = uid_by_object.get(page_ref.idnum)
        if uid is None:
            return None
        return uid, tuple(_resolve(item) for item in list(dest)[1:])

    @staticmethod
    def _decode_metadata(reader: PdfReader) -> DocumentMetadata:
        info = reader.metadata
        if info is None:
            return DocumentMetadata()
        values: dict[str, str] = {}
        for key in info:
            value = _resolve(info.raw_get(key))
            if isinstance(value, str):
                values[str(key)] = str(value)
            elif isinstance(value, bytes):
                values[str(key)] = value.decode("latin-1")
        return DocumentMetadata.from_info(values)

    @staticmethod
    def _decode_outline(reader: PdfReader, pages: list[Page]) -> list[OutlineEntry]:
        try:
            items = reader.outline
        except _STRUCTURE_ERRORS as exc:
            LOGGER.warning("Ignoring unreadable outline: %s", exc)
            return []

        def convert(nodes: Iterable[Any]) -> list[OutlineEntry]:
            entries: list[OutlineEntry] = []
            for node in nodes:
                if isinstance(node, list):
                    children = convert(node)
                    if entries:
                        entries[-1].children.extend(children)
                    else:
                        entries.extend(children)
                    continue
                index = reader.get_destination_page_number(node)
                target = pages[index].uid if index is not None and 0 <= index < len(pages) else None
                entries.append(OutlineEntry(str(node.title or ""), target))
            return entries

        return convert(items)

    @staticmethod
    def _decode_form(root: DictionaryObject) -> FormDefinition | None:
        acro = _resolve(root.get("/AcroForm"))
        if not isinstance(acro, DictionaryObject):
            return None
        fields = _resolve(acro.get("/Fields"))
        return FormDefinition(
            fields=list(fields) if isinstance(fields, ArrayObject) else [],
            entries={key: acro.raw_get(key) for key in acro if key != "/Fields"},
        )

    # -- Encode --------------------------------------------------------------

    def encode(self, document: Document) -> bytes:
        """Serialize ``document``; output is returned only once fully written."""

        document.check_integrity()
        writer = PdfWriter()
        try:
            resource_refs = self._materialize_resources(writer, document)
            segment_refs: dict[int, IndirectObject] = {}
            written_pages: list[tuple[Page, PageObject]] = []
            for page in document.pages:
                written = self._write_page(writer, page, resource_refs, segment_refs)
                written_pages.append((page, written))
            page_refs = {page.uid: written.indirect_reference for page, written in written_pages}

            written_annotations = self._write_annotations(writer, written_pages, page_refs)
            self._write_outline(writer, document.outline, page_refs, parent=None)
            self._write_form(writer, document.form, written_annotations)
            for key, value in document.catalog_extras.items():
                writer.root_object[NameObject(key)] = value.clone(writer) if hasattr(value, "clone") else value

            writer.metadata = document.metadata.to_info()
            writer.pdf_header = "%PDF-" + self._output_version(document)
            if isinstance(document.security, Encrypted):
                self._encrypt(writer, document.security)

            buffer = BytesIO()
            writer.write(buffer)
        except DependencyError as exc:
            raise EncryptionError(str(exc), reason=EncryptionError.UNSUPPORTED) from exc
        except FileNotDecryptedError as exc:
            raise EncryptionError(str(exc), reason=EncryptionError.MISSING_CREDENTIAL) from exc
        except PdfForgeError:
            raise
        except _STRUCTURE_ERRORS as exc:
            raise FormatError(f"Unable to serialize document: {exc}") from exc
        data = buffer.getvalue()
        LOGGER.debug("Encoded %d page(s) into %d byte(s)", document.page_count, len(data))
        return data

    @staticmethod
    def _materialize(writer: PdfWriter, resource: Resource) -> Any:
        payload = resource.payload
        if isinstance(payload, IndirectObject):
            return payload.clone(writer)
        if resource.label is not None and isinstance(payload, DictionaryObject):
            return writer._add_object(DictionaryObject(payload))
        return payload.clone(writer) if hasattr(payload, "clone") else payload

    def _materialize_resources(self, writer: PdfWriter, document: Document) -> dict[str, Any]:
        refs: dict[str, Any] = {}
        for page in document.pages:
            for _, _, ref in page.resource_refs():
                if ref.resource_id not in refs:
                    refs[ref.resource_id] = self._materialize(writer, ref.resolve(document.resources))
        unused = len(document.resources) - len(refs)
        if unused:
            LOGGER.debug("Skipping %d unreferenced resource(s)", unused)
        return refs

    def _segment_ref(self, writer: PdfWriter, segment: ContentSegment, cache: dict[int, IndirectObject]) -> IndirectObject:
        if segment.source is not None:
            return segment.source.clone(writer)
        cached = cache.get(id(segment))
        if cached is not None:
            return cached
        stream = DecodedStreamObject()
        stream.set_data(segment.payload)
        encoded: StreamObject = stream.flate_encode() if self.compress_streams else stream
        ref = writer._add_object(encoded)
        cache[id(segment)] = ref
        return ref

    def _write_page(
        self,
        writer: PdfWriter,
        page: Page,
        resource_refs: dict[str, Any],
        segment_refs: dict[int, IndirectObject],
    ) -> PageObject:
        shell = PageObject()
        shell[NameObject("/Type")] = NameObject("/Page")
        for key, value in page.attributes.items():
            shell[NameObject(key)] = value
        shell[NameObject("/MediaBox")] = RectangleObject(page.media_box)
        if page.crop_box is not None:
            shell[NameObject("/CropBox")] = RectangleObject(page.crop_box)
        if page.rotation:
            shell[NameObject("/Rotate")] = NumberObject(page.rotation)
        written = writer.add_page(shell)

        resources = DictionaryObject()
        for kind, entries in page.resources.items():
            if entries:
                resources[NameObject(kind.value)] = DictionaryObject(
                    {NameObject("/" + name): resource_refs[ref.resource_id] for name, ref in entries.items()}
                )
        for key, value in page.resource_extras.items():
            resources[NameObject(key)] = value.clone(writer) if hasattr(value, "clone") else value
        written[NameObject("/Resources")] = resources
        if page.contents:
            written[NameObject("/Contents")] = ArrayObject(
                [self._segment_ref(writer, segment, segment_refs) for segment in page.contents]
            )
        return written

    def _write_annotations(
        self,
        writer: PdfWriter,
        written_pages: list[tuple[Page, PageObject]],
        page_refs: dict[int, IndirectObject],
    ) -> set[tuple[int, int, int]]:
        written_keys: set[tuple[int, int, int]] = set()
        for page, written in written_pages:
            annots = ArrayObject()
            for annotation in page.annotations:
                if annotation.payload is None:
                    continue
                ignore = ["/P"]
                target = None
                if annotation.target_uid is not None:
                    target = page_refs.get(annotation.target_uid)
                    if target is None:
                        LOGGER.debug("Dropping link annotation whose target page was removed")
                        continue
                    ignore += ["/Dest", "/A"]

                key = _source_key(annotation.payload)
                source = _resolve(annotation.payload)
                clone = source.clone(writer, force_duplicate=key in written_keys, ignore_fields=ignore)
                ref = getattr(clone, "indirect_reference", None)
                if ref is None:
                    ref = writer._add_object(clone)
                clone[NameObject("/P")] = written.indirect_reference
                if target is not None:
                    fit = list(annotation.target_fit) or [NameObject("/Fit")]
                    clone[NameObject("/Dest")] = ArrayObject([target, *fit])
                if key is not None:
                    written_keys.add(key)
                annots.append(ref)
            if annots:
                written[NameObject("/Annots")] = annots
        return written_keys

    @staticmethod
    def _outline_survives(entry: OutlineEntry, page_refs: dict[int, IndirectObject]) -> bool:
        if entry.target_uid is not None and entry.target_uid in page_refs:
            return True
        return any(PdfCodec._outline_survives(child, page_refs) for child in entry.children)

    def _write_outline(
        self,
        writer: PdfWriter,
        entries: list[OutlineEntry],
        page_refs: dict[int, IndirectObject],
        *,
        parent: Any,
    ) -> None:
        for entry in entries:
            if not self._outline_survives(entry, page_refs):
                LOGGER.debug("Dropping outline entry %r without a target page", entry.title)
                continue
            target = page_refs.get(entry.target_uid) if entry.target_uid is not None else None
            item = writer.add_outline_item(entry.title, target, parent=parent)
            self._write_outline(writer, entry.children, page_refs, parent=item)

    @staticmethod
    def _field_has_widget(field: Any, written: set[tuple[int, int, int]], depth: int = 0) -> bool:
        key = _source_key(field)
        if key is not None and key in written:
            return True
        obj = _resolve(field)
        if depth > 32 or not isinstance(obj, DictionaryObject):
            return False
        kids = _resolve(obj.get("/Kids"))
        if not isinstance(kids, ArrayObject):
            return False
        return any(PdfCodec._field_has_widget(kid, written, depth + 1) for kid in kids)

    def _write_form(
        self, writer: PdfWriter, form: FormDefinition | None, written: set[tuple[int, int, int]]
    ) -> None:
        if form is None:
            return
        fields = [field for field in form.fields if self._field_has_widget(field, written)]
        if not fields:
            LOGGER.debug("No form fields with surviving widgets; dropping AcroForm")
            return
        acro = DictionaryObject()
        for key, value in form.entries.items():
            acro[NameObject(key)] = value.clone(writer, ignore_fields=("/P",)) if hasattr(value, "clone") else value
        acro[NameObject("/Fields")] = ArrayObject(
            [field.clone(writer, ignore_fields=("/P",)) for field in fields]
        )
        writer.root_object[NameObject("/AcroForm")] = writer._add_object(acro)

    @staticmethod
    def _output_version(document: Document) -> str:
        version = document.version
        required = ["1.4"] if any(resource.label for _, resource in document.resources.items()) else []
        if isinstance(document.security, Encrypted):
            required.append(_ALGORITHM_VERSIONS.get(document.security.algorithm, "1.4"))
        for candidate in required:
            if version_key(candidate) > version_key(version):
                version = candidate
        return version

    @staticmethod
    def _encrypt(writer: PdfWriter, security: Encrypted) -> None:
        if security.user_password is None:
            raise EncryptionError(
                "Document was opened with its owner password; supply the user password to keep it encrypted "
                "or unlock it first",
                reason=EncryptionError.MISSING_CREDENTIAL,
            )
        owner = security.owner_password
        if owner is None:
            # Owner password is unknown; a random one keeps the permissions enforced.
            owner = secrets.token_hex(16)
        LOGGER.debug("Encrypting output with %s and owner password %s", security.algorithm, "<provided>")
        writer.encrypt(
            security.user_password,
            owner,
            permissions_flag=security.permissions.to_p_value(),
            algorithm=security.algorithm,
        )


_DEFAULT_CODEC = PdfCodec()


def decode(data: bytes, *, password: str | None = None) -> Document:
    return _DEFAULT_CODEC.decode(data, password=password)


def encode(document: Document) -> bytes:
    return _DEFAULT_CODEC.encode(document)


def probe(data: bytes) -> ProbeResult:
    return _DEFAULT_CODEC.probe(data)
