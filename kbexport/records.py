"""
Input records supplied by the content store.

The exporter never queries storage itself: callers hand over a fully
materialized record for one post and its replies.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, List, Mapping, Optional, Union

from .exceptions import ContentRecordError
from .models import Attachment

logger = logging.getLogger(__name__)


def parse_timestamp(value: Union[str, datetime, None], field_name: str = "created_at") -> datetime:
    """
    Parse a record timestamp.

    Args:
        value: ``datetime`` or ISO-8601 string (``"2024-01-05 15:04:00"`` also accepted)
        field_name: Field name used in error messages

    Returns:
        Parsed datetime

    Raises:
        ContentRecordError: If the value is missing or unparseable
    """
    if isinstance(value, datetime):
        return value
    if not value:
        raise ContentRecordError(f"Missing timestamp field '{field_name}'")
    try:
        return datetime.fromisoformat(str(value).strip())
    except ValueError as exc:
        raise ContentRecordError(f"Invalid timestamp in '{field_name}'", str(value)) from exc


FALSE_FLAGS = ("", "0", "false", "no", "off")


def parse_flag(value: Any) -> bool:
    """Truthiness of a content-store flag; 0/1 may arrive as strings."""
    if isinstance(value, str):
        return value.strip().lower() not in FALSE_FLAGS
    return bool(value)


def _parse_attachments(items: Optional[List[Any]]) -> List[Attachment]:
    attachments = []
    for item in items or []:
        if isinstance(item, Attachment):
            attachments.append(item)
        elif isinstance(item, Mapping):
            name = item.get("original_filename")
            if not name:
                raise ContentRecordError("Attachment without 'original_filename'")
            attachments.append(Attachment(str(name), str(item.get("path") or "")))
        elif isinstance(item, str):
            attachments.append(Attachment(item))
        else:
            raise ContentRecordError("Unsupported attachment entry", repr(item))
    return attachments


@dataclass(slots=True)
class ReplyRecord:
    content_html: str
    created_at: datetime
    edited: bool = False
    attachments: List[Attachment] = field(default_factory=list)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ReplyRecord":
        return cls(
            content_html=str(data.get("content_html") or ""),
            created_at=parse_timestamp(data.get("created_at"), "replies.created_at"),
            edited=parse_flag(data.get("edited", False)),
            attachments=_parse_attachments(data.get("attachments")),
        )


@dataclass(slots=True)
class ContentRecord:
    """Materialized post record (input contract of the exporter)."""
    id: int
    title: str
    category_name: str
    subcategory_name: str
    created_at: datetime
    html_content: str = ""
    attachments: List[Attachment] = field(default_factory=list)
    replies: List[ReplyRecord] = field(default_factory=list)

    @property
    def breadcrumb(self) -> str:
        return f"{self.category_name} > {self.subcategory_name}"

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> "ContentRecord":
        """
        Build a record from a mapping such as a decoded JSON object.

        Raises:
            ContentRecordError: If the record is missing or a required field is absent
        """
        if not data:
            raise ContentRecordError("Content record not found")

        missing = [name for name in ("id", "title", "created_at") if data.get(name) in (None, "")]
        if missing:
            raise ContentRecordError("Content record is missing required fields", ", ".join(missing))

        try:
            record_id = int(data["id"])
        except (TypeError, ValueError) as exc:
            raise ContentRecordError("Content record id must be an integer", repr(data["id"])) from exc

        replies = [ReplyRecord.from_mapping(reply) for reply in data.get("replies") or []]
        try:
            replies.sort(key=lambda reply: reply.created_at)
        except TypeError as exc:
            raise ContentRecordError("Reply timestamps mix timezone-aware and naive values", str(exc)) from exc

        record = cls(
            id=record_id,
            title=str(data["title"]),
            category_name=str(data.get("category_name") or ""),
            subcategory_name=str(data.get("subcategory_name") or ""),
            created_at=parse_timestamp(data.get("created_at")),
            html_content=str(data.get("html_content") or ""),
            attachments=_parse_attachments(data.get("attachments")),
            replies=replies,
        )
        logger.debug(f"Content record {record.id} loaded with {len(record.replies)} replies")
        return record

