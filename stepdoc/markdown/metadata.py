"""Document metadata: the `key: value` paragraph following the title."""

import re
from collections.abc import Collection

from stepdoc.exceptions import InvalidMetadataError
from stepdoc.markdown.models import Document

META_ID = "id"

_METADATA_LINE = re.compile(r"(.+?):(.+)")


def standard_split(value: str) -> list[str]:
    """Split on commas, trimming and lowercasing each element. Empty elements are dropped."""
    return [v for v in (part.strip().lower() for part in value.split(",")) if v]


def parse_metadata_lines(text: str) -> dict[str, str]:
    """Collect `key: value` lines into a map with lowercased keys. Later keys win."""
    meta: dict[str, str] = {}
    for line in text.splitlines():
        m = _METADATA_LINE.match(line)
        if not m:
            continue
        meta[m.group(1).strip().lower()] = m.group(2).strip()
    return meta


def apply_metadata(meta: dict[str, str], doc: Document, pass_metadata: Collection[str] = ()) -> None:
    """Assign recognized keys to document fields.

    Unrecognized keys are kept in `doc.extra` only when allow-listed in pass_metadata.
    """
    for key, value in meta.items():
        match key:
            case "authors":
                doc.authors = value
            case "badge path":
                doc.badge_path = value
            case "summary":
                doc.summary = value
            case "id":
                doc.id = value
            case "categories":
                doc.categories.extend(standard_split(value))
            case "environments" | "tags":
                doc.tags.extend(standard_split(value))
            case "status":
                doc.status = standard_split(value)
            case "feedback link":
                doc.feedback = value
            case "analytics account":
                doc.ga = value
            case _ if key in pass_metadata:
                doc.extra[key] = value


def parse_metadata(text: str, doc: Document, pass_metadata: Collection[str] = ()) -> None:
    """Parse the metadata paragraph text into doc.

    Raises:
        InvalidMetadataError: if no non-empty `id` key is present
    """
    meta = parse_metadata_lines(text)
    if not meta.get(META_ID):
        raise InvalidMetadataError(meta)
    apply_metadata(meta, doc, pass_metadata)
