"""
Tests for importing field definitions from the spreadsheet CSV export.
"""

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import Category, Subcategory
from app.schemas.fields import FieldType
from app.services.field_import import (
    EMAIL_PATTERN,
    generate_validation_rules,
    group_fields,
    import_fields,
    map_csv_field_type,
    parse_csv,
    parse_options,
    row_to_field,
)


CSV_TEXT = (
    "\ufeffUnique ID,Label,Field Type,Options/Other Details,Category,Sub Category,"
    "Description,Is Required,Is Hidden\n"
    "FAC-001,Equipment Type,Dropdown,Treadmill | Reformer | Bike,Facilities & Equipment,"
    "Equipment Malfunction,Which machine,Yes,No\n"
    "FAC-002,What happened,Long Text,min 50 characters,Facilities & Equipment,"
    "Equipment Malfunction,,Yes,No\n"
    "FAC-003,Member Injured,Radio Button,Yes/No,Facilities & Equipment,"
    "Equipment Malfunction,,No,No\n"
    ",Orphan,Short Text,,Facilities & Equipment,Equipment Malfunction,,No,No\n"
    "TRN-001,Trainer Email,Email,,Training,Trainer Feedback,,No,Yes\n"
)


@pytest.mark.forms
class TestRowParsing:
    """Test suite for CSV row conversion."""

    def test_parse_csv_strips_bom(self):
        rows = parse_csv(CSV_TEXT)

        assert len(rows) == 5
        assert rows[0]["Unique ID"] == "FAC-001"

    @pytest.mark.parametrize("raw,expected", [
        ("Short Text", FieldType.TEXT),
        ("Radio Button", FieldType.DROPDOWN),
        ("Time", FieldType.DATETIME),
        ("Long Text", FieldType.LONG_TEXT),
        ("Email", FieldType.EMAIL),
        ("", FieldType.TEXT),
    ])
    def test_map_csv_field_type(self, raw, expected):
        assert map_csv_field_type(raw) == expected

    def test_parse_options(self):
        assert parse_options("Yes/No") == ["Yes", "No"]
        assert parse_options("Treadmill | Reformer |  Bike ") == ["Treadmill", "Reformer", "Bike"]
        assert parse_options("min 50 characters") is None
        assert parse_options("") is None

    def test_generated_rules(self):
        long_text = generate_validation_rules({
            "Field Type": "Long Text",
            "Options/Other Details": "min 50 characters",
            "Label": "What happened",
        })
        email = generate_validation_rules({"Field Type": "Email", "Label": "Email"})

        assert long_text == [{
            "type": "minLength",
            "value": 50,
            "message": "What happened must be at least 50 characters",
        }]
        assert email[0]["value"] == EMAIL_PATTERN
        assert generate_validation_rules({"Field Type": "Short Text"}) == []

    def test_row_to_field(self):
        field = row_to_field(parse_csv(CSV_TEXT)[0])

        assert field == {
            "id": "FAC-001",
            "label": "Equipment Type",
            "fieldType": "Dropdown",
            "description": "Which machine",
            "isRequired": True,
            "isHidden": False,
            "options": ["Treadmill", "Reformer", "Bike"],
        }

    def test_row_without_id(self):
        assert row_to_field({"Label": "Orphan"}) is None

    def test_group_fields_skips_bad_rows(self):
        groups = group_fields(parse_csv(CSV_TEXT))

        assert list(groups) == [
            ("Facilities & Equipment", "Equipment Malfunction"),
            ("Training", "Trainer Feedback"),
        ]
        assert [f["id"] for f in groups[("Facilities & Equipment", "Equipment Malfunction")]] == [
            "FAC-001", "FAC-002", "FAC-003"
        ]


@pytest.mark.asyncio
@pytest.mark.database
@pytest.mark.forms
class TestImportFields:
    """Test suite for import_fields."""

    async def test_creates_catalog(self, db_session: AsyncSession):
        stats = await import_fields(db_session, parse_csv(CSV_TEXT))

        assert stats == {
            "categories_created": 2,
            "subcategories_created": 2,
            "subcategories_updated": 0,
            "fields": 4,
        }

        subcategory = (await db_session.execute(
            select(Subcategory).where(Subcategory.name == "Trainer Feedback")
        )).scalar_one()
        field = subcategory.form_fields["fields"][0]
        assert field["id"] == "TRN-001"
        assert field["isHidden"] is True

    async def test_updates_existing_subcategory(
        self, db_session: AsyncSession, create_category, create_subcategory
    ):
        category = await create_category(name="facilities & equipment")
        existing = await create_subcategory(
            category, name="Equipment Malfunction", form_fields=[{"id": "OLD-1"}]
        )

        stats = await import_fields(db_session, parse_csv(CSV_TEXT))

        assert stats["categories_created"] == 1
        assert stats["subcategories_updated"] == 1
        assert [f["id"] for f in existing.form_fields["fields"]] == ["FAC-001", "FAC-002", "FAC-003"]

        categories = (await db_session.execute(select(Category))).scalars().all()
        assert len(categories) == 2
