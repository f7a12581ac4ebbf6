"""Contact directory keyed by postal-code region and role."""

from __future__ import annotations

import csv
import json
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Mapping, Sequence

from .util import write_json

_LOGGER = logging.getLogger("plzmap.contacts")

DEFAULT_REQUIRED_ROLES = ("VAD", "KAMLIGHT", "KAMHEAVY")
ALL_CODES = tuple(f"{idx:02d}" for idx in range(100))
CSV_HEADERS = ("plz2", "role", "name", "tel", "mail")
PAYLOAD_VERSION = 2

_CODE_RE = re.compile(r"[0-9]{2}")
_PLACEHOLDER_TEL = "+49 30 0000 0000"


class ContactSourceError(ValueError):
    """Raised when the tabular contact source fails validation."""


def normalize_role(value: Any) -> str:
    return str(value if value is not None else "").strip().upper()


@dataclass(frozen=True, slots=True)
class ContactRecord:
    code: str
    role: str
    name: str
    tel: str
    mail: str

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> ContactRecord | None:
        """Lenient parse used for the published JSON directory."""
        code = str(data.get("plz2") or "").strip().zfill(2)
        role = normalize_role(data.get("role"))
        name = str(data.get("name") or "").strip()
        tel = str(data.get("tel") or "").strip()
        mail = str(data.get("mail") or "").strip()
        if not _CODE_RE.fullmatch(code) or not role or not name or not tel or not mail:
            return None
        return cls(code=code, role=role, name=name, tel=tel, mail=mail)

    @classmethod
    def placeholder(cls, code: str, role: str) -> ContactRecord:
        return cls(
            code=code,
            role=role,
            name=f"{role} Team {code}",
            tel=_PLACEHOLDER_TEL,
            mail=f"{role.lower()}.plz{code}@intranet.local",
        )

    @property
    def dial_tel(self) -> str:
        return re.sub(r"\s+", "", self.tel)

    def to_dict(self) -> dict[str, str]:
        return {
            "plz2": self.code,
            "role": self.role,
            "name": self.name,
            "tel": self.tel,
            "mail": self.mail,
        }


class ContactDirectory:
    """Resolve contacts by `(code, role)`, synthesizing placeholders when absent."""

    def __init__(
        self,
        records: Iterable[ContactRecord] = (),
        *,
        required_roles: Sequence[str] = DEFAULT_REQUIRED_ROLES,
    ) -> None:
        self.required_roles = tuple(normalize_role(role) for role in required_roles)
        self._by_code: dict[str, dict[str, ContactRecord]] = {}
        for record in records:
            self._by_code.setdefault(record.code, {})[record.role] = record

    @classmethod
    def from_payload(
        cls,
        payload: Any,
        *,
        required_roles: Sequence[str] = DEFAULT_REQUIRED_ROLES,
    ) -> ContactDirectory:
        rows = payload.get("contacts") if isinstance(payload, Mapping) else None
        if not isinstance(rows, list):
            return cls(required_roles=required_roles)
        records = [
            record
            for record in (
                ContactRecord.from_mapping(row) for row in rows if isinstance(row, Mapping)
            )
            if record is not None
        ]
        skipped = len(rows) - len(records)
        if skipped:
            _LOGGER.warning("Ignored %d invalid contact records", skipped)
        return cls(records, required_roles=required_roles)

    def __len__(self) -> int:
        return sum(len(roles) for roles in self._by_code.values())

    def resolve(self, code: str, role: str) -> ContactRecord:
        normalized = normalize_role(role)
        record = self._by_code.get(code, {}).get(normalized)
        if record is not None:
            return record
        return ContactRecord.placeholder(code, normalized)

    def contacts_for(self, code: str) -> tuple[ContactRecord, ...]:
        return tuple(self.resolve(code, role) for role in self.required_roles)


def load_contact_directory(
    path: Path,
    *,
    required_roles: Sequence[str] = DEFAULT_REQUIRED_ROLES,
) -> ContactDirectory:
    """Load the published JSON directory; unreadable input yields an empty one."""
    if not path.exists():
        _LOGGER.warning("Contact directory %s not found; placeholders will be used", path)
        return ContactDirectory(required_roles=required_roles)
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        _LOGGER.warning("Contact directory %s unreadable (%s); placeholders will be used", path, exc)
        return ContactDirectory(required_roles=required_roles)
    return ContactDirectory.from_payload(payload, required_roles=required_roles)


def _content_lines(text: str) -> list[tuple[int, str]]:
    out: list[tuple[int, str]] = []
    for line_no, line in enumerate(text.splitlines(), start=1):
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        out.append((line_no, stripped))
    return out


def _normalize_csv_row(
    raw: Mapping[str, str],
    line_no: int,
    required_roles: Sequence[str],
) -> ContactRecord:
    code = str(raw.get("plz2") or "").strip()
    if not _CODE_RE.fullmatch(code):
        raise ContactSourceError(f"Line {line_no}: plz2 must have two digits (00-99)")
    role = normalize_role(raw.get("role"))
    if role not in required_roles:
        raise ContactSourceError(
            f"Line {line_no}: role must be one of {', '.join(required_roles)}"
        )
    name = str(raw.get("name") or "").strip()
    tel = str(raw.get("tel") or "").strip()
    mail = str(raw.get("mail") or "").strip()
    if not name or not tel or not mail:
        raise ContactSourceError(f"Line {line_no}: name, tel and mail are required")
    return ContactRecord(code=code, role=role, name=name, tel=tel, mail=mail)


def _check_completeness(records: Sequence[ContactRecord], required_roles: Sequence[str]) -> None:
    present = {(record.code, record.role) for record in records}
    missing = [
        f"{code}|{role}"
        for code in ALL_CODES
        for role in required_roles
        if (code, role) not in present
    ]
    if missing:
        preview = ", ".join(missing[:20])
        suffix = " ..." if len(missing) > 20 else ""
        raise ContactSourceError(f"Contact source is incomplete. Missing: {preview}{suffix}")


def read_contacts_csv(
    path: Path,
    *,
    required_roles: Sequence[str] = DEFAULT_REQUIRED_ROLES,
) -> list[ContactRecord]:
    """Strictly parse and validate the contact CSV.

    Every one of the 100 two-digit codes needs exactly one row per required
    role. Problems raise `ContactSourceError` with the offending line number.
    """
    roles = tuple(normalize_role(role) for role in required_roles)
    if not path.exists():
        raise FileNotFoundError(f"Contact CSV not found: {path}")
    lines = _content_lines(path.read_text(encoding="utf-8-sig"))
    if len(lines) < 2:
        raise ContactSourceError("Contact CSV contains no records")

    header_line_no, header_text = lines[0]
    headers = [cell.strip() for cell in next(csv.reader([header_text]))]
    for header in CSV_HEADERS:
        if header not in headers:
            raise ContactSourceError(f"Line {header_line_no}: missing CSV header '{header}'")

    records: list[ContactRecord] = []
    seen: set[tuple[str, str]] = set()
    for line_no, text in lines[1:]:
        cells = [cell.strip() for cell in next(csv.reader([text]))]
        raw = {header: (cells[idx] if idx < len(cells) else "") for idx, header in enumerate(headers)}
        record = _normalize_csv_row(raw, line_no, roles)
        key = (record.code, record.role)
        if key in seen:
            raise ContactSourceError(f"Line {line_no}: duplicate combination {record.code}|{record.role}")
        seen.add(key)
        records.append(record)

    _check_completeness(records, roles)
    records.sort(key=lambda record: (int(record.code), roles.index(record.role)))
    return records


def contacts_payload(
    records: Sequence[ContactRecord],
    *,
    source: str,
    required_roles: Sequence[str] = DEFAULT_REQUIRED_ROLES,
    generated_at: datetime | None = None,
) -> dict[str, Any]:
    stamp = (generated_at or datetime.now(timezone.utc)).isoformat()
    return {
        "version": PAYLOAD_VERSION,
        "generated_at": stamp,
        "source": source,
        "required_roles": list(required_roles),
        "total_plz2": len(ALL_CODES),
        "total_entries": len(records),
        "contacts": [record.to_dict() for record in records],
    }


@dataclass(slots=True)
class ContactBuildReport:
    output_path: Path | None = None
    errors: list[str] = field(default_factory=list)
    infos: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def run_build_contacts(
    csv_path: Path,
    output_path: Path,
    *,
    required_roles: Sequence[str] = DEFAULT_REQUIRED_ROLES,
) -> ContactBuildReport:
    """Validate the contact CSV and publish it as the JSON directory."""
    report = ContactBuildReport()
    try:
        records = read_contacts_csv(csv_path, required_roles=required_roles)
    except (OSError, ContactSourceError) as exc:
        report.errors.append(f"Failed building contact directory: {exc}")
        return report
    payload = contacts_payload(
        records,
        source=str(csv_path),
        required_roles=tuple(normalize_role(role) for role in required_roles),
    )
    write_json(output_path, payload)
    report.output_path = output_path
    report.infos.append(f"Wrote {len(records)} contacts to {output_path}")
    return report


def format_contacts_lines(report: ContactBuildReport) -> Sequence[str]:
    lines: list[str] = []
    lines.extend(f"[INFO] {msg}" for msg in report.infos)
    lines.extend(f"[ERROR] {msg}" for msg in report.errors)
    if report.ok:
        lines.append("[OK] Contact directory built with no errors.")
    return lines
