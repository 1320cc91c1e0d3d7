"""Persistence & Cross-Reference: write the run's records, match phone numbers."""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from datetime import datetime
from pathlib import Path

from mailsift.core.errors import MappingLoadWarning, WriteError
from mailsift.core.logging import get_logger
from mailsift.core.models import EmailRecord

OUTPUT_PREFIX = "emails_"
OUTPUT_SUFFIX = ".json"


def format_timestamp(moment: datetime) -> str:
    """Format as ``YYYY-MM-DD_HH-mm-ss`` for output filenames."""
    return moment.strftime("%Y-%m-%d_%H-%M-%S")


def output_filename(moment: datetime) -> str:
    return f"{OUTPUT_PREFIX}{format_timestamp(moment)}{OUTPUT_SUFFIX}"


def save_records(
    records: Sequence[EmailRecord],
    output_dir: Path | str,
    now: datetime | None = None,
) -> Path:
    """Write all records as indented JSON to a timestamped file.

    Returns:
        Path of the written file.

    Raises:
        WriteError: If the directory cannot be created or the file written.
    """
    output_dir = Path(output_dir)
    path = output_dir / output_filename(now or datetime.now())
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
        path.write_text(
            json.dumps([r.to_dict() for r in records], indent=2),
            encoding="utf-8",
        )
    except OSError as exc:
        raise WriteError(f"Cannot write output file {path}: {exc}") from exc

    get_logger("persistence").info(
        "records_saved", path=str(path), count=len(records)
    )
    return path


def _read_mapping(path: Path) -> dict:
    if not path.exists():
        raise MappingLoadWarning(f"mapping file {path} does not exist")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise MappingLoadWarning(f"cannot read mapping file {path}: {exc}") from exc
    except ValueError as exc:
        raise MappingLoadWarning(f"mapping file {path} is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise MappingLoadWarning(f"mapping file {path} is not a JSON object")
    return data


def load_phone_mapping(path: Path | str) -> dict[str, str]:
    """Load the address -> phone number mapping.

    Never fatal: a missing or unusable file is logged and yields an empty
    mapping. Non-string entries are dropped individually.
    """
    log = get_logger("persistence")
    path = Path(path)
    try:
        data = _read_mapping(path)
    except MappingLoadWarning as warning:
        log.warning("phone_mapping_unavailable", path=str(path), reason=str(warning))
        return {}

    mapping: dict[str, str] = {}
    for address, phone in data.items():
        if isinstance(phone, str):
            mapping[address] = phone
        else:
            log.warning("phone_mapping_entry_skipped", address=address, value=repr(phone))
    log.debug("phone_mapping_loaded", path=str(path), entries=len(mapping))
    return mapping


def cross_reference(
    records: Sequence[EmailRecord], mapping: Mapping[str, str]
) -> list[str]:
    """Phone numbers for every record whose recipient is mapped, in record order.

    Matching is exact on the raw ``To`` value. Duplicates are kept.
    """
    return [mapping[r.to] for r in records if r.to is not None and r.to in mapping]


def persist(
    records: Sequence[EmailRecord],
    mapping_path: Path | str,
    output_dir: Path | str = "output",
    now: datetime | None = None,
) -> list[str]:
    """Save ``records`` then return the phone numbers of mapped recipients.

    Raises:
        WriteError: Only when the output cannot be written.
    """
    save_records(records, output_dir, now)
    return cross_reference(records, load_phone_mapping(mapping_path))
