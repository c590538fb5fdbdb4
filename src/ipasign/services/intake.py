"""Streaming intake of multipart signing requests.

The request body is parsed chunk by chunk as it arrives, so every check
(unexpected or repeated parts, wrong extensions, oversized files) fails the
request before the rest of the body is read.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import AsyncIterator

from python_multipart.exceptions import MultipartParseError
from python_multipart.multipart import MultipartParser, parse_options_header

from ipasign.core.exceptions import (
    InvalidFileTypeError,
    MissingFilesError,
    UploadValidationError,
)
from ipasign.core.logging import session_id_context
from ipasign.storage.session_store import (
    ALLOWED_EXTENSIONS,
    PartWriter,
    SessionFileStore,
    UploadKind,
    UploadSession,
)

logger = logging.getLogger(__name__)

PASSWORD_FIELD = "password"
BUNDLE_ID_FIELD = "bundleId"
MAX_TEXT_FIELD_SIZE = 1024 * 64  # 64KB


@dataclass
class SignUpload:
    """Inputs of one signing request, staged in an upload session."""

    session: UploadSession
    password: str | None = None
    bundle_id: str | None = None


def parse_boundary(content_type: str | None) -> bytes:
    """Extract the multipart boundary from a Content-Type header.

    Raises:
        UploadValidationError: If the request is not multipart/form-data
    """
    media_type, params = parse_options_header(content_type or "")
    boundary = params.get(b"boundary")
    if media_type != b"multipart/form-data" or not boundary:
        raise UploadValidationError("Request must be multipart/form-data")
    return boundary


class _MultipartIntake:
    """Routes parser events for one request into an upload session.

    Parser callbacks run synchronously inside MultipartParser.write() and only
    queue events; handle_events() then does the async work.
    """

    def __init__(self, session_store: SessionFileStore):
        self.session_store = session_store
        self.session: UploadSession | None = None
        self.fields: dict[str, str] = {}

        self._events: list[tuple[str, object]] = []
        self._seen: set[UploadKind] = set()
        self._headers: dict[bytes, bytes] = {}
        self._header_field = b""
        self._header_value = b""
        self._writer: PartWriter | None = None
        self._field_name: str | None = None
        self._field_value = bytearray()

    @property
    def callbacks(self) -> dict:
        return {
            "on_part_begin": self._on_part_begin,
            "on_header_field": self._on_header_field,
            "on_header_value": self._on_header_value,
            "on_header_end": self._on_header_end,
            "on_headers_finished": self._on_headers_finished,
            "on_part_data": self._on_part_data,
            "on_part_end": self._on_part_end,
        }

    def _on_part_begin(self) -> None:
        self._headers = {}

    def _on_header_field(self, data: bytes, start: int, end: int) -> None:
        self._header_field += data[start:end]

    def _on_header_value(self, data: bytes, start: int, end: int) -> None:
        self._header_value += data[start:end]

    def _on_header_end(self) -> None:
        self._headers[self._header_field.lower()] = self._header_value
        self._header_field = b""
        self._header_value = b""

    def _on_headers_finished(self) -> None:
        self._events.append(("headers", self._headers))

    def _on_part_data(self, data: bytes, start: int, end: int) -> None:
        self._events.append(("data", data[start:end]))

    def _on_part_end(self) -> None:
        self._events.append(("end", None))

    async def handle_events(self) -> None:
        events, self._events = self._events, []
        for event, payload in events:
            if event == "headers":
                self._start_part(payload)
            elif event == "data":
                await self._part_data(payload)
            else:
                await self._end_part()

    def _start_part(self, headers: dict[bytes, bytes]) -> None:
        _, options = parse_options_header(headers.get(b"content-disposition", b""))
        name = options.get(b"name", b"").decode("utf-8", errors="replace")

        if b"filename" not in options:
            # Plain text field; anything but the known ones is skipped
            known = name in (PASSWORD_FIELD, BUNDLE_ID_FIELD)
            self._field_name = name if known else None
            self._field_value = bytearray()
            return

        try:
            kind = UploadKind(name)
        except ValueError:
            raise UploadValidationError(f"Unexpected file field: {name}")
        if kind in self._seen:
            raise UploadValidationError(f"Duplicate file field: {name}")
        self._seen.add(kind)

        file_name = options[b"filename"].decode("utf-8", errors="replace")
        if not file_name:
            # Empty file input; reported as missing at the end
            return
        if Path(file_name).suffix.lower() != kind.extension:
            raise InvalidFileTypeError(
                f"Invalid file type. Allowed: {', '.join(ALLOWED_EXTENSIONS)}"
            )

        if self.session is None:
            self.session = self.session_store.create_session()
            session_id_context.set(self.session.session_id)
        self._writer = self.session_store.open_part(self.session, kind, file_name)

    async def _part_data(self, data: bytes) -> None:
        if self._writer is not None:
            await self._writer.write(data)
        elif self._field_name is not None:
            if len(self._field_value) + len(data) > MAX_TEXT_FIELD_SIZE:
                raise UploadValidationError(f"Field too large: {self._field_name}")
            self._field_value.extend(data)

    async def _end_part(self) -> None:
        if self._writer is not None:
            writer, self._writer = self._writer, None
            await writer.close()
            logger.info(
                "Upload stored",
                extra={
                    "kind": writer.stored.kind.value,
                    "file_name": writer.stored.original_name,
                    "size": writer.stored.size_bytes,
                },
            )
        elif self._field_name is not None:
            self.fields[self._field_name] = self._field_value.decode("utf-8", errors="replace")
            self._field_name = None

    async def abort(self) -> None:
        if self._writer is not None:
            await self._writer.close()
            self._writer = None
        if self.session is not None:
            await self.session_store.teardown(self.session)

    def result(self) -> SignUpload:
        if self.session is None or any(kind not in self.session.files for kind in UploadKind):
            raise MissingFilesError()
        return SignUpload(
            session=self.session,
            password=self.fields.get(PASSWORD_FIELD) or None,
            bundle_id=self.fields.get(BUNDLE_ID_FIELD) or None,
        )


async def receive_upload(
    stream: AsyncIterator[bytes],
    content_type: str | None,
    session_store: SessionFileStore,
) -> SignUpload:
    """Parse a multipart signing request straight into an upload session.

    Accepts exactly one file part per kind (`ipa`, `certificate`,
    `provision`) plus the optional `password` and `bundleId` text fields.
    Reading stops at the first invalid part, and whatever was already
    written is removed.

    Args:
        stream: Request body chunks
        content_type: The request's Content-Type header
        session_store: Where the uploaded files are staged

    Returns:
        The staged inputs; the caller owns the session from here on

    Raises:
        MissingFilesError: If any of the three kinds is absent
        InvalidFileTypeError: If a part's extension does not match its kind
        FileTooLargeError: If a part exceeds the configured maximum
        UploadValidationError: If a part is unexpected, repeated or malformed
    """
    intake = _MultipartIntake(session_store)
    parser = MultipartParser(parse_boundary(content_type), intake.callbacks)
    try:
        try:
            async for chunk in stream:
                parser.write(chunk)
                await intake.handle_events()
            parser.finalize()
            await intake.handle_events()
        except MultipartParseError as e:
            raise UploadValidationError("Malformed multipart body", details=str(e))
        return intake.result()
    except Exception:
        await intake.abort()
        raise
