"""Multipart body parsing for relay requests."""

import python_multipart
from python_multipart.exceptions import MultipartParseError
from python_multipart.multipart import parse_options_header

from services.upload_relay.app.upload.errors import ClientInputError
from services.upload_relay.app.upload.schemas import IncomingUpload
from shared.utils.logging import get_logger

logger = get_logger(__name__)

FILE_FIELD = "file"

_CHUNK_SIZE = 64 * 1024


class _FilePartCollector:
    """MultipartParser callbacks that keep only the first part named ``file``."""

    def __init__(self, field_name: str):
        self.field_name = field_name
        self.upload: IncomingUpload | None = None
        self.part_count = 0
        self._header_field = b""
        self._header_value = b""
        self._headers: dict[bytes, bytes] = {}
        self._capturing = False
        self._buffer = bytearray()
        self._filename: str | None = None
        self._content_type: str | None = None

    def on_part_begin(self) -> None:
        self.part_count += 1
        self._headers = {}
        self._capturing = False

    def on_header_field(self, data: bytes, start: int, end: int) -> None:
        self._header_field += data[start:end]

    def on_header_value(self, data: bytes, start: int, end: int) -> None:
        self._header_value += data[start:end]

    def on_header_end(self) -> None:
        self._headers[self._header_field.lower()] = self._header_value
        self._header_field = b""
        self._header_value = b""

    def on_headers_finished(self) -> None:
        _, options = parse_options_header(
            self._headers.get(b"content-disposition", b"")
        )
        name = options.get(b"name", b"").decode("utf-8", errors="replace")
        if self.upload is not None or name != self.field_name:
            return

        self._capturing = True
        self._buffer = bytearray()
        raw_filename = options.get(b"filename")
        self._filename = raw_filename.decode("utf-8", errors="replace") if raw_filename else None
        raw_type = self._headers.get(b"content-type")
        self._content_type = raw_type.decode("latin-1").strip() if raw_type else None

    def on_part_data(self, data: bytes, start: int, end: int) -> None:
        if self._capturing:
            self._buffer.extend(data[start:end])

    def on_part_end(self) -> None:
        if not self._capturing:
            return
        self._capturing = False
        # Browsers send an empty, nameless file part when no file was selected
        if not self._filename and not self._buffer:
            return
        self.upload = IncomingUpload(
            filename=self._filename,
            content_type=self._content_type,
            data=bytes(self._buffer),
        )


def parse_multipart(
    body: bytes,
    content_type: str | None,
    field_name: str = FILE_FIELD,
) -> IncomingUpload:
    """Locate the ``file`` part of a multipart/form-data body.

    Args:
        body: Raw, already transport-decoded request body
        content_type: Request Content-Type header, including the boundary
        field_name: Form field carrying the upload

    Returns:
        The part's declared filename, content type and bytes

    Raises:
        ClientInputError: If the body is not multipart, is malformed, or has no file part
    """
    media_type, params = parse_options_header(content_type or "")
    if media_type.lower() != b"multipart/form-data":
        raise ClientInputError("Expected multipart/form-data")

    boundary = params.get(b"boundary")
    if not boundary:
        raise ClientInputError("Missing multipart boundary")
    if not body:
        raise ClientInputError("Empty request body")

    collector = _FilePartCollector(field_name)
    parser = python_multipart.MultipartParser(
        boundary,
        {
            "on_part_begin": collector.on_part_begin,
            "on_part_data": collector.on_part_data,
            "on_part_end": collector.on_part_end,
            "on_header_field": collector.on_header_field,
            "on_header_value": collector.on_header_value,
            "on_header_end": collector.on_header_end,
            "on_headers_finished": collector.on_headers_finished,
        },
    )

    try:
        for offset in range(0, len(body), _CHUNK_SIZE):
            parser.write(body[offset : offset + _CHUNK_SIZE])
        parser.finalize()
    except MultipartParseError as e:
        logger.warning("multipart_parse_failed", error=str(e))
        raise ClientInputError(f"Malformed multipart body: {e}") from e

    if collector.upload is None:
        logger.info("multipart_file_missing", parts=collector.part_count)
        raise ClientInputError("No file uploaded")

    logger.debug(
        "multipart_file_parsed",
        filename=collector.upload.filename,
        content_type=collector.upload.content_type,
        size_bytes=collector.upload.size,
    )
    return collector.upload
