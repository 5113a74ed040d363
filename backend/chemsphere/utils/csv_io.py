"""CSV parsing + validation for bulk import, and CSV rendering for export."""

import csv
import io
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Callable, Iterable

from fastapi import UploadFile
from fastapi.responses import StreamingResponse

from chemsphere.middleware.exceptions import BusinessLogicError
from chemsphere.utils.listing import get_value


@dataclass
class FieldDef:
    """Definition for a single CSV column."""
    column: str
    db_field: str
    required: bool = False
    coerce: Callable[[str], Any] | None = None
    choices: tuple[str, ...] | None = None
    default: Any = None


@dataclass
class RowError:
    row: int
    errors: list[str]


@dataclass
class ParseResult:
    rows: list[dict[str, Any]] = field(default_factory=list)
    row_numbers: list[int] = field(default_factory=list)
    errors: list[RowError] = field(default_factory=list)
    total_rows: int = 0


@dataclass
class ExportColumn:
    """One column of an export: header text, source attribute, formatter."""
    header: str
    attr: str
    fmt: Callable[[Any], str] | None = None


def coerce_float(val: str) -> float | None:
    if not val.strip():
        return None
    return float(val)


def coerce_date(val: str) -> date | None:
    """Accept YYYY-MM-DD or a full ISO timestamp; empty means no date."""
    val = val.strip()
    if not val:
        return None
    if len(val) == 10:
        return date.fromisoformat(val)
    return datetime.fromisoformat(val.replace("Z", "+00:00")).date()


def parse_csv_text(text: str, field_defs: list[FieldDef]) -> ParseResult:
    """Parse CSV text, check required fields and choices, coerce types."""
    reader = csv.DictReader(io.StringIO(text))
    result = ParseResult()

    for raw_row in reader:
        # File line number, so skipped blank lines do not shift reported rows
        row_num = reader.line_num
        # Skip completely blank lines
        if not any((v or "").strip() for v in raw_row.values()):
            continue
        result.total_rows += 1
        row_errors: list[str] = []
        parsed: dict[str, Any] = {}

        for fd in field_defs:
            raw_val = (raw_row.get(fd.column) or "").strip()

            if not raw_val and fd.default is not None:
                raw_val = str(fd.default)

            if fd.required and not raw_val:
                row_errors.append(f"'{fd.column}' is required")
                continue

            if not raw_val:
                parsed[fd.db_field] = None
                continue

            if fd.choices:
                match = next(
                    (c for c in fd.choices if c.lower() == raw_val.lower()), None
                )
                if match is None:
                    row_errors.append(
                        f"'{fd.column}': '{raw_val}' must be one of {', '.join(fd.choices)}"
                    )
                    continue
                raw_val = match

            if fd.coerce:
                try:
                    parsed[fd.db_field] = fd.coerce(raw_val)
                except (ValueError, TypeError) as exc:
                    row_errors.append(f"'{fd.column}': invalid value '{raw_val}' ({exc})")
                    continue
            else:
                parsed[fd.db_field] = raw_val

        if row_errors:
            result.errors.append(RowError(row=row_num, errors=row_errors))
        else:
            result.rows.append(parsed)
            result.row_numbers.append(row_num)

    return result


async def parse_csv(file: UploadFile, field_defs: list[FieldDef]) -> ParseResult:
    """Parse an uploaded CSV file."""
    content = await file.read()
    try:
        text = content.decode("utf-8-sig")  # handle BOM from Excel
    except UnicodeDecodeError:
        raise BusinessLogicError(
            "CSV file must be UTF-8 encoded", error_code="INVALID_ENCODING"
        )
    return parse_csv_text(text, field_defs)


def generate_template_csv(
    field_defs: list[FieldDef],
    sample_row: dict[str, str] | None = None,
) -> str:
    """Generate CSV template string with headers and optional sample row."""
    output = io.StringIO()
    headers = [fd.column for fd in field_defs]
    writer = csv.writer(output)
    writer.writerow(headers)
    if sample_row:
        writer.writerow([sample_row.get(h, "") for h in headers])
    return output.getvalue()


def _format(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def join_list(value: Any) -> str:
    return ",".join(value or [])


def write_csv(items: Iterable[Any], columns: list[ExportColumn]) -> str:
    """Render `items` as CSV text with one column per ExportColumn."""
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow([c.header for c in columns])
    for item in items:
        writer.writerow([
            (c.fmt or _format)(get_value(item, c.attr)) for c in columns
        ])
    return output.getvalue()


def csv_response(csv_text: str, filename: str) -> StreamingResponse:
    return StreamingResponse(
        iter([csv_text]),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
