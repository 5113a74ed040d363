"""Bulk CSV import for chemicals and equipment.

Endpoints:
    GET  /api/bulk-import/chemicals/template   Download chemical CSV template
    POST /api/bulk-import/chemicals/upload     Upload chemical CSV
    GET  /api/bulk-import/equipment/template   Download equipment CSV template
    POST /api/bulk-import/equipment/upload     Upload equipment CSV

Every row is parsed and validated first. If any row has an error the
whole file is rejected (422, per-row errors in `details`) and nothing is
written; otherwise all rows are inserted in one transaction.
"""

from fastapi import APIRouter, Depends, File, UploadFile, status
from pydantic import BaseModel, ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from chemsphere.auth.deps import require_permission
from chemsphere.crud import chemicals as chemical_crud
from chemsphere.crud import equipment as equipment_crud
from chemsphere.database import get_db
from chemsphere.middleware.exceptions import BusinessLogicError
from chemsphere.models.user import User
from chemsphere.schemas.chemical import SAFETY_CLASSES, ChemicalCreate
from chemsphere.schemas.equipment import EQUIPMENT_STATUSES, EquipmentCreate
from chemsphere.services.store import InventoryStore, get_store
from chemsphere.utils.audit import log_audit
from chemsphere.utils.csv_io import (
    FieldDef,
    ParseResult,
    RowError,
    coerce_date,
    coerce_float,
    csv_response,
    generate_template_csv,
    parse_csv,
)
from chemsphere.utils.ghs import canonicalize_ghs

router = APIRouter()


# ── Response schema ─────────────────────────────────────────


class RowErrorOut(BaseModel):
    row: int
    errors: list[str]


class BulkImportResult(BaseModel):
    total_rows: int
    created: int


# ── Field definitions ───────────────────────────────────────

CHEMICAL_FIELDS = [
    FieldDef(column="name", db_field="name", required=True),
    FieldDef(column="batch_number", db_field="batch_number"),
    FieldDef(column="brand", db_field="brand"),
    FieldDef(column="physical_state", db_field="physical_state",
             choices=("liquid", "solid"), default="liquid"),
    FieldDef(column="unit", db_field="unit"),
    FieldDef(column="volume_per_unit", db_field="volume_per_unit", coerce=coerce_float),
    FieldDef(column="initial_quantity", db_field="initial_quantity", required=True, coerce=coerce_float),
    FieldDef(column="current_quantity", db_field="current_quantity", required=True, coerce=coerce_float),
    FieldDef(column="expiration_date", db_field="expiration_date", coerce=coerce_date),
    FieldDef(column="date_of_arrival", db_field="date_of_arrival", coerce=coerce_date),
    FieldDef(column="safety_class", db_field="safety_class", required=True, choices=SAFETY_CLASSES),
    FieldDef(column="location", db_field="location", required=True),
    FieldDef(column="ghs_symbols", db_field="ghs_symbols", coerce=canonicalize_ghs),
]

CHEMICAL_SAMPLE = {
    "name": "Ethanol",
    "batch_number": "ETH-001",
    "brand": "Sigma Aldrich",
    "physical_state": "liquid",
    "unit": "bottle",
    "volume_per_unit": "500",
    "initial_quantity": "10",
    "current_quantity": "10",
    "expiration_date": "2027-02-15",
    "date_of_arrival": "2025-05-01",
    "safety_class": "flammable",
    "location": "Cabinet A1",
    "ghs_symbols": "Flame,Exclamation Mark",
}

EQUIPMENT_FIELDS = [
    FieldDef(column="name", db_field="name", required=True),
    FieldDef(column="model", db_field="model"),
    FieldDef(column="serial_id", db_field="serial_id", required=True),
    FieldDef(column="status", db_field="status", required=True,
             choices=EQUIPMENT_STATUSES, default="Available"),
    FieldDef(column="location", db_field="location", required=True),
    FieldDef(column="purchase_date", db_field="purchase_date", coerce=coerce_date),
    FieldDef(column="warranty_expiration", db_field="warranty_expiration", coerce=coerce_date),
    FieldDef(column="last_maintenance", db_field="last_maintenance", coerce=coerce_date),
    FieldDef(column="next_maintenance", db_field="next_maintenance", coerce=coerce_date),
    FieldDef(column="condition", db_field="condition"),
]

EQUIPMENT_SAMPLE = {
    "name": "Centrifuge",
    "model": "Eppendorf 5424",
    "serial_id": "EQ-001",
    "status": "Available",
    "location": "Lab 1",
    "purchase_date": "2023-03-15",
    "warranty_expiration": "2026-03-15",
    "last_maintenance": "2025-01-10",
    "next_maintenance": "2025-07-10",
    "condition": "Good",
}


# ── Helpers ─────────────────────────────────────────────────


def _validate_rows(parsed: ParseResult, schema) -> list:
    """Run every parsed row through `schema`; raise if any row failed."""
    errors = list(parsed.errors)
    valid = []
    for row_num, row in zip(parsed.row_numbers, parsed.rows):
        clean = {k: v for k, v in row.items() if v is not None}
        try:
            valid.append(schema(**clean))
        except ValidationError as exc:
            errors.append(RowError(
                row=row_num,
                errors=[
                    f"{'.'.join(str(p) for p in e['loc']) or 'row'}: {e['msg']}"
                    for e in exc.errors()
                ],
            ))

    if parsed.total_rows == 0:
        raise BusinessLogicError("The CSV file contains no data rows", error_code="EMPTY_IMPORT")
    if errors:
        errors.sort(key=lambda e: e.row)
        raise BusinessLogicError(
            f"{len(errors)} row(s) failed validation; nothing was imported",
            error_code="IMPORT_VALIDATION_ERROR",
            details={"errors": [RowErrorOut(row=e.row, errors=e.errors).model_dump() for e in errors]},
        )
    return valid


# ── Chemicals ───────────────────────────────────────────────


@router.get("/chemicals/template")
async def chemical_template(
    _user: User = Depends(require_permission("data.import")),
):
    csv_text = generate_template_csv(CHEMICAL_FIELDS, CHEMICAL_SAMPLE)
    return csv_response(csv_text, "chemicals_template.csv")


@router.post(
    "/chemicals/upload",
    response_model=BulkImportResult,
    status_code=status.HTTP_201_CREATED,
)
async def upload_chemicals(
    file: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
    store: InventoryStore = Depends(get_store),
    user: User = Depends(require_permission("data.import", "chemical.write")),
):
    parsed = await parse_csv(file, CHEMICAL_FIELDS)
    rows = _validate_rows(parsed, ChemicalCreate)

    for row in rows:
        await chemical_crud.create_chemical(db, row, user)
    await log_audit(
        db, user, type="import", action="IMPORT",
        item_name="Chemicals",
        details={"file": file.filename, "created": len(rows)},
    )
    await db.commit()

    store.invalidate("chemicals", "audit_logs")
    return BulkImportResult(total_rows=parsed.total_rows, created=len(rows))


# ── Equipment ───────────────────────────────────────────────


@router.get("/equipment/template")
async def equipment_template(
    _user: User = Depends(require_permission("data.import")),
):
    csv_text = generate_template_csv(EQUIPMENT_FIELDS, EQUIPMENT_SAMPLE)
    return csv_response(csv_text, "equipment_template.csv")


@router.post(
    "/equipment/upload",
    response_model=BulkImportResult,
    status_code=status.HTTP_201_CREATED,
)
async def upload_equipment(
    file: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
    store: InventoryStore = Depends(get_store),
    user: User = Depends(require_permission("data.import", "equipment.write")),
):
    parsed = await parse_csv(file, EQUIPMENT_FIELDS)
    rows = _validate_rows(parsed, EquipmentCreate)

    for row in rows:
        await equipment_crud.create_equipment(db, row, user)
    await log_audit(
        db, user, type="import", action="IMPORT",
        item_name="Equipment",
        details={"file": file.filename, "created": len(rows)},
    )
    await db.commit()

    store.invalidate("equipment", "audit_logs")
    return BulkImportResult(total_rows=parsed.total_rows, created=len(rows))
