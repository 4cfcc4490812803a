"""
File Parser
===========

Extracts prompt-ready text from uploaded files.

- PDF via pypdf
- text-like MIME types decoded as UTF-8
- images, Word documents and unknown types described by a placeholder

`extract_attachment_texts` isolates failures per file: one unreadable
upload becomes a placeholder line instead of failing the whole assembly.
"""

import asyncio
import io
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Protocol, Sequence

from pypdf import PdfReader
from pypdf.errors import PdfReadError

from coach_context.schemas import FileAttachment, ParsedFile


TEXT_MIME_TYPES = {
    "application/json",
    "application/xml",
}

WORD_MIME_TYPES = {
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/msword",
}


class FileParseError(Exception):
    """Raised when an uploaded file cannot be fetched or parsed."""


class FileParser(Protocol):
    """Protocol for file-parsing collaborators."""

    async def parse_file_from_storage(
        self,
        object_path: str,
        mime_type: str,
        filename: str
    ) -> ParsedFile:
        ...


@dataclass(frozen=True)
class AttachmentText:
    """Extracted text of one attachment, ready for a prompt section."""
    name: str
    text: str


def unreadable_placeholder(filename: str) -> str:
    return f"[Unable to read attached file: {filename}]"


class LocalFileParser:
    """Reads uploads from a directory on local disk."""

    def __init__(self, storage_root: str):
        self.storage_root = Path(storage_root).resolve()

    async def parse_file_from_storage(
        self,
        object_path: str,
        mime_type: str,
        filename: str
    ) -> ParsedFile:
        """
        Fetch an object and extract its text.

        Raises:
            FileParseError: the object is missing, outside the storage root,
                or is a PDF that cannot be parsed.
        """
        data = await asyncio.to_thread(self._read_bytes, object_path)
        return await asyncio.to_thread(parse_file_bytes, data, mime_type, filename)

    def _read_bytes(self, object_path: str) -> bytes:
        path = (self.storage_root / object_path.lstrip("/")).resolve()
        if self.storage_root not in path.parents:
            raise FileParseError(f"Object path escapes storage root: {object_path}")
        try:
            return path.read_bytes()
        except OSError as e:
            raise FileParseError(f"Cannot read {object_path}: {e}") from e


def parse_file_bytes(data: bytes, mime_type: str, filename: str) -> ParsedFile:
    """Extract text from raw file bytes according to the MIME type."""
    if mime_type == "application/pdf":
        return _parse_pdf(data, filename)

    if mime_type.startswith("text/") or mime_type in TEXT_MIME_TYPES:
        return ParsedFile(
            text=data.decode("utf-8", errors="replace").strip(),
            mime_type=mime_type,
            filename=filename
        )

    if mime_type.startswith("image/"):
        text = f"[Image file: {filename} - content cannot be extracted as text.]"
    elif mime_type in WORD_MIME_TYPES:
        text = f"[Word document: {filename} - convert to PDF or paste the text for full extraction.]"
    else:
        text = f"[Unsupported file type: {mime_type}. File: {filename}]"

    return ParsedFile(text=text, mime_type=mime_type, filename=filename)


def _parse_pdf(data: bytes, filename: str) -> ParsedFile:
    try:
        reader = PdfReader(io.BytesIO(data))
        pages = [page.extract_text() or "" for page in reader.pages]
    except (PdfReadError, ValueError) as e:
        raise FileParseError(f"PDF parse error for {filename}: {e}") from e

    return ParsedFile(
        text="\n".join(pages).strip(),
        mime_type="application/pdf",
        filename=filename,
        page_count=len(pages)
    )


async def extract_attachment_texts(
    file_parser: FileParser,
    attachments: Sequence[FileAttachment]
) -> List[AttachmentText]:
    """
    Parse each attachment in order. A file that fails to parse is replaced
    by a placeholder naming it; the rest are still read.
    """
    results = []
    for attachment in attachments:
        try:
            parsed = await file_parser.parse_file_from_storage(
                attachment.object_path,
                attachment.mime_type,
                attachment.original_name
            )
            text = parsed.text
        except Exception as e:
            logging.warning(f"Failed to parse attachment {attachment.original_name}: {e}")
            text = unreadable_placeholder(attachment.original_name)
        results.append(AttachmentText(name=attachment.original_name, text=text))
    return results
