"""
Field definition import from the spreadsheet CSV export.

Expected columns: Unique ID, Label, Field Type, Options/Other Details,
Category, Sub Category, Description, Is Required, Is Hidden.

Rows are grouped by (category, subcategory) in file order. Each group
replaces the embedded form definition of its subcategory; missing
categories and subcategories are created.
"""

import csv
import io
import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import Category, Subcategory
from app.schemas.fields import FieldType
from app.services.forms import normalize_field_type

logger = logging.getLogger(__name__)

EMAIL_PATTERN = r"^[^\s@]+@[^\s@]+\.[^\s@]+$"
PHONE_PATTERN = r"^[\d\s\+\-\(\)]{10,}$"
MIN_LONG_TEXT_HINT = "min 50 characters"
MIN_LONG_TEXT_LENGTH = 50

# Spreadsheet type names that the field type normalizer does not know
CSV_FIELD_TYPES = {
    "Short Text": FieldType.TEXT,
    "Radio Button": FieldType.DROPDOWN,
    "Time": FieldType.DATETIME,
}


def _cell(row: Dict[str, Any], column: str) -> str:
    return (row.get(column) or "").strip()


def _flag(row: Dict[str, Any], column: str) -> bool:
    return _cell(row, column).lower() == "yes"


def parse_csv(text: str) -> List[Dict[str, str]]:
    """Read the CSV export into row dicts keyed by header."""
    reader = csv.DictReader(io.StringIO(text.lstrip("\ufeff")))
    return [dict(row) for row in reader]


def map_csv_field_type(value: str) -> FieldType:
    value = (value or "").strip()
    if value in CSV_FIELD_TYPES:
        return CSV_FIELD_TYPES[value]
    return normalize_field_type(value)


def parse_options(raw: str) -> Optional[List[str]]:
    """
    Options column to a list.

    "Yes/No" is a boolean choice and "a | b | c" a list; anything else is a
    free-text hint, not options.
    """
    raw = (raw or "").strip()
    if not raw:
        return None
    if raw == "Yes/No":
        return ["Yes", "No"]
    if " | " in raw:
        return [part.strip() for part in raw.split(" | ") if part.strip()]
    return None


def generate_validation_rules(row: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Validation rules implied by a row's type and options text."""
    rules = []
    field_type = _cell(row, "Field Type")
    options = _cell(row, "Options/Other Details")
    label = _cell(row, "Label")

    if field_type == "Long Text" and MIN_LONG_TEXT_HINT in options:
        rules.append({
            "type": "minLength",
            "value": MIN_LONG_TEXT_LENGTH,
            "message": f"{label} must be at least {MIN_LONG_TEXT_LENGTH} characters"
        })
    if field_type == "Email":
        rules.append({
            "type": "pattern",
            "value": EMAIL_PATTERN,
            "message": "Please enter a valid email address"
        })
    if field_type == "Phone":
        rules.append({
            "type": "pattern",
            "value": PHONE_PATTERN,
            "message": "Please enter a valid phone number"
        })
    return rules


def row_to_field(row: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """One CSV row as an embedded field object, or None without a Unique ID."""
    unique_id = _cell(row, "Unique ID")
    if not unique_id:
        return None

    field = {
        "id": unique_id,
        "label": _cell(row, "Label") or unique_id,
        "fieldType": map_csv_field_type(_cell(row, "Field Type")).value,
        "description": _cell(row, "Description"),
        "isRequired": _flag(row, "Is Required"),
        "isHidden": _flag(row, "Is Hidden"),
    }
    options = parse_options(_cell(row, "Options/Other Details"))
    if options:
        field["options"] = options
    rules = generate_validation_rules(row)
    if rules:
        field["validation"] = rules
    return field


def group_fields(rows: Iterable[Dict[str, Any]]) -> Dict[Tuple[str, str], List[Dict[str, Any]]]:
    """Fields per (category, subcategory), in file order."""
    groups: Dict[Tuple[str, str], List[Dict[str, Any]]] = {}
    for line, row in enumerate(rows, start=2):
        category = _cell(row, "Category")
        subcategory = _cell(row, "Sub Category")
        field = row_to_field(row)
        if not category or not subcategory or field is None:
            logger.warning(f"Skipping CSV line {line}: missing category, subcategory or id")
            continue
        groups.setdefault((category, subcategory), []).append(field)
    return groups


async def _get_or_create_category(session: AsyncSession, name: str) -> Tuple[Category, bool]:
    result = await session.execute(
        select(Category).where(func.lower(Category.name) == name.lower())
    )
    category = result.scalar_one_or_none()
    if category is not None:
        return category, False

    category = Category(name=name, is_active=True)
    session.add(category)
    await session.flush()
    return category, True


async def _get_or_create_subcategory(
    session: AsyncSession,
    category: Category,
    name: str
) -> Tuple[Subcategory, bool]:
    result = await session.execute(
        select(Subcategory)
        .where(Subcategory.category_id == category.id)
        .where(func.lower(Subcategory.name) == name.lower())
    )
    subcategory = result.scalar_one_or_none()
    if subcategory is not None:
        return subcategory, False

    subcategory = Subcategory(category_id=category.id, name=name, is_active=True)
    session.add(subcategory)
    await session.flush()
    return subcategory, True


async def import_fields(session: AsyncSession, rows: Iterable[Dict[str, Any]]) -> Dict[str, int]:
    """
    Upsert categories and subcategories with their embedded fields.

    Returns:
        Counts: categories_created, subcategories_created,
        subcategories_updated, fields
    """
    stats = {
        "categories_created": 0,
        "subcategories_created": 0,
        "subcategories_updated": 0,
        "fields": 0,
    }

    for (category_name, subcategory_name), fields in group_fields(rows).items():
        category, created = await _get_or_create_category(session, category_name)
        if created:
            stats["categories_created"] += 1

        subcategory, created = await _get_or_create_subcategory(session, category, subcategory_name)
        if created:
            stats["subcategories_created"] += 1
        else:
            stats["subcategories_updated"] += 1

        subcategory.form_fields = {"fields": fields}
        stats["fields"] += len(fields)

    await session.flush()
    logger.info(
        f"Imported {stats['fields']} fields: "
        f"{stats['subcategories_created']} subcategories created, "
        f"{stats['subcategories_updated']} updated"
    )
    return stats
