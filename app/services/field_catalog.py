"""
Field catalog: read path from category/subcategory rows to typed form fields.

Subcategories store their form definition as embedded JSON, either a bare
list of field objects or an object wrapping them as {"fields": [...]}. The
two shapes are told apart only in normalize_form_fields, and raw JSON is
turned into FieldDefinition objects only in parse_field_definition.
"""

import logging
from typing import Any, List, Optional
from uuid import UUID

from pydantic import ValidationError
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import Category, Subcategory, GLOBAL_CATEGORY_NAME, GLOBAL_SUBCATEGORY_NAME
from app.schemas.fields import EffectiveField, FieldDefinition, ValidationRule
from app.services.field_defaults import GLOBAL_FIELDS
from app.services.forms import merge_fields, normalize_field_type, widget_for

logger = logging.getLogger(__name__)


def normalize_form_fields(raw: Any) -> List[Any]:
    """Return the list of raw field objects from either embedded shape."""
    if isinstance(raw, list):
        return raw
    if isinstance(raw, dict) and isinstance(raw.get("fields"), list):
        return raw["fields"]
    return []


def _first(raw: dict, *keys: str, default: Any = None) -> Any:
    for key in keys:
        if raw.get(key) is not None:
            return raw[key]
    return default


def _parse_rules(field_id: str, raw_rules: Any) -> List[ValidationRule]:
    if not isinstance(raw_rules, list):
        return []

    rules = []
    for raw_rule in raw_rules:
        try:
            rules.append(ValidationRule.model_validate(raw_rule))
        except ValidationError:
            logger.debug(f"Dropping unsupported validation rule on {field_id}: {raw_rule!r}")
    return rules


def parse_field_definition(raw: Any) -> Optional[FieldDefinition]:
    """
    Convert one embedded field object into a FieldDefinition.

    Accepts the key spellings found in stored data (id/uniqueId,
    fieldType/type, isRequired/required, isHidden/hidden). Returns None for
    anything without an id.
    """
    if not isinstance(raw, dict):
        return None

    field_id = str(_first(raw, "id", "uniqueId", default="")).strip()
    if not field_id:
        return None

    label = str(_first(raw, "label", default="")).strip() or field_id
    options = raw.get("options")

    return FieldDefinition(
        id=field_id,
        label=label,
        field_type=normalize_field_type(str(_first(raw, "fieldType", "field_type", "type", default="Text"))),
        options=[str(o) for o in options] if isinstance(options, list) else None,
        description=str(_first(raw, "description", default="")),
        is_required=bool(_first(raw, "isRequired", "is_required", "required", default=False)),
        is_hidden=bool(_first(raw, "isHidden", "is_hidden", "hidden", default=False)),
        validation=_parse_rules(field_id, raw.get("validation")),
    )


def parse_form_fields(raw: Any) -> List[FieldDefinition]:
    """Parse an embedded form definition, skipping entries without an id."""
    fields = []
    for entry in normalize_form_fields(raw):
        field = parse_field_definition(entry)
        if field is None:
            logger.warning(f"Skipping embedded field without an id: {entry!r}")
            continue
        fields.append(field)
    return fields


class FieldCatalog:
    """
    Lookups for categories, subcategories and their form fields.

    Missing rows give empty results rather than errors.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_subcategories(self, category_id: UUID) -> List[Subcategory]:
        result = await self.session.execute(
            select(Subcategory)
            .where(Subcategory.category_id == category_id)
            .where(Subcategory.is_active.is_(True))
            .order_by(Subcategory.name)
        )
        return list(result.scalars().all())

    async def get_fields_for_subcategory(self, subcategory_id: UUID) -> List[FieldDefinition]:
        """All fields defined on a subcategory, hidden ones included."""
        subcategory = await self.session.get(Subcategory, subcategory_id)
        if subcategory is None:
            return []
        return parse_form_fields(subcategory.form_fields)

    async def get_global_subcategory(self) -> Optional[Subcategory]:
        result = await self.session.execute(
            select(Subcategory)
            .join(Category, Subcategory.category_id == Category.id)
            .where(func.lower(Category.name) == GLOBAL_CATEGORY_NAME.lower())
            .where(func.lower(Subcategory.name) == GLOBAL_SUBCATEGORY_NAME.lower())
            .order_by(Subcategory.created_at)
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def get_global_fields(self) -> List[FieldDefinition]:
        """
        Fields shown on every form.

        Falls back to the built-in global field set when the Global
        subcategory is missing or has no fields.
        """
        subcategory = await self.get_global_subcategory()
        fields = parse_form_fields(subcategory.form_fields) if subcategory else []
        if fields:
            return fields
        return parse_form_fields(GLOBAL_FIELDS)

    async def get_effective_fields(
        self,
        category_id: UUID,
        subcategory_id: Optional[UUID] = None
    ) -> List[FieldDefinition]:
        """Visible, merged form for a category/subcategory selection."""
        global_fields = await self.get_global_fields()

        local_fields: List[FieldDefinition] = []
        if subcategory_id is not None:
            subcategory = await self.session.get(Subcategory, subcategory_id)
            if subcategory is not None and subcategory.category_id == category_id:
                local_fields = parse_form_fields(subcategory.form_fields)

        return merge_fields(global_fields, local_fields)

    async def get_rendered_fields(
        self,
        category_id: UUID,
        subcategory_id: Optional[UUID] = None
    ) -> List[EffectiveField]:
        fields = await self.get_effective_fields(category_id, subcategory_id)
        return [
            EffectiveField(**field.model_dump(), widget=widget_for(field.field_type))
            for field in fields
        ]

    async def save_form_fields(self, subcategory_id: UUID, raw: Any) -> Optional[Subcategory]:
        """Replace a subcategory's embedded form definition as given."""
        subcategory = await self.session.get(Subcategory, subcategory_id)
        if subcategory is None:
            return None

        subcategory.form_fields = raw
        await self.session.flush()
        logger.info(
            f"Saved {len(normalize_form_fields(raw))} fields on subcategory {subcategory.name}"
        )
        return subcategory

    async def duplicate_form(self, source_id: UUID, target_id: UUID) -> Optional[Subcategory]:
        """Copy one subcategory's form definition onto another."""
        source = await self.session.get(Subcategory, source_id)
        if source is None:
            return None
        fields = [dict(f) if isinstance(f, dict) else f for f in normalize_form_fields(source.form_fields)]
        return await self.save_form_fields(target_id, {"fields": fields})
