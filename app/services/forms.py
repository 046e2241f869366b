"""
Dynamic form engine.

Merges the global and subcategory field sets into the list a client renders,
maps field types to input widgets, and validates submitted answers. Nothing
in here touches the database; the field catalog feeds it typed
FieldDefinition objects.
"""

import logging
import math
import re
from typing import Any, Dict, Iterable, List, Optional

from app.schemas.fields import FieldDefinition, FieldType, ValidationRule, ValidationRuleType

logger = logging.getLogger(__name__)


WIDGETS = {
    FieldType.TEXT: "text",
    FieldType.EMAIL: "email",
    FieldType.PHONE: "tel",
    FieldType.LONG_TEXT: "textarea",
    FieldType.NUMBER: "number",
    FieldType.DROPDOWN: "select",
    FieldType.CHECKBOX: "checkbox",
    FieldType.DATETIME: "datetime-local",
    FieldType.DATE: "date",
    FieldType.FILE_UPLOAD: "file",
    FieldType.AUTO_GENERATED: "readonly",
}

# Loose type names seen in imported and hand-edited form definitions
_TYPE_ALIASES = {
    "dropdown": FieldType.DROPDOWN,
    "select": FieldType.DROPDOWN,
    "radio": FieldType.DROPDOWN,
    "textarea": FieldType.LONG_TEXT,
    "longtext": FieldType.LONG_TEXT,
    "long text": FieldType.LONG_TEXT,
    "date": FieldType.DATE,
    "datetime": FieldType.DATETIME,
    "time": FieldType.DATETIME,
    "email": FieldType.EMAIL,
    "tel": FieldType.PHONE,
    "phone": FieldType.PHONE,
    "number": FieldType.NUMBER,
    "checkbox": FieldType.CHECKBOX,
    "file": FieldType.FILE_UPLOAD,
    "file upload": FieldType.FILE_UPLOAD,
    "auto-generated": FieldType.AUTO_GENERATED,
}

_NUMERIC_PREFIX = re.compile(r"^\s*[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")


def normalize_field_type(value: Any) -> FieldType:
    """Map a loosely written field type to a FieldType. Unknown names become Text."""
    if isinstance(value, FieldType):
        return value
    if not isinstance(value, str):
        return FieldType.TEXT
    try:
        return FieldType(value)
    except ValueError:
        pass
    return _TYPE_ALIASES.get(value.strip().lower(), FieldType.TEXT)


def widget_for(field_type: Any) -> str:
    """Input widget used to render a field type."""
    try:
        return WIDGETS[FieldType(field_type)]
    except (KeyError, ValueError):
        return "text"


def merge_fields(
    global_fields: Iterable[FieldDefinition],
    local_fields: Iterable[FieldDefinition]
) -> List[FieldDefinition]:
    """
    Merge global and subcategory fields into the visible form.

    A local field with the same id as a global one replaces its content but
    keeps the position where the id was first seen. Hidden fields are dropped
    after the merge, so a local field can hide a global one.
    """
    merged: Dict[str, FieldDefinition] = {}
    for field in list(global_fields) + list(local_fields):
        # Re-assigning an existing key keeps its insertion position
        merged[field.id] = field

    return [field for field in merged.values() if not field.is_hidden]


def is_empty(value: Any) -> bool:
    """Whether a submitted answer counts as missing. False and 0 are answers."""
    if value is None:
        return True
    if isinstance(value, str):
        return value == ""
    if isinstance(value, (list, tuple, dict, set)):
        return len(value) == 0
    return False


def to_number(value: Any) -> Optional[float]:
    """
    Coerce a value to a finite float, or None when no comparison is possible.

    Strings are read by their leading numeric prefix, so "12kg" is 12 and
    "abc" is None.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        match = _NUMERIC_PREFIX.match(value)
        if not match:
            return None
        number = float(match.group(0))
    else:
        return None
    return number if math.isfinite(number) else None


def _length(value: Any) -> Optional[int]:
    if isinstance(value, (str, list, tuple, dict)):
        return len(value)
    return None


def _as_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _check_rule(field: FieldDefinition, rule: ValidationRule, value: Any) -> bool:
    """Return True when the rule passes."""
    rule_type = rule.type

    if rule_type in (ValidationRuleType.MIN_LENGTH, ValidationRuleType.MAX_LENGTH):
        length = _length(value)
        bound = to_number(rule.value)
        if is_empty(value) or length is None or bound is None:
            return True
        if rule_type == ValidationRuleType.MIN_LENGTH:
            return length >= bound
        return length <= bound

    if rule_type == ValidationRuleType.PATTERN:
        if is_empty(value):
            return True
        try:
            return re.search(str(rule.value), _as_text(value)) is not None
        except re.error as e:
            logger.warning(
                f"Invalid pattern {rule.value!r} on field {field.id}: {e}"
            )
            return False

    if rule_type in (ValidationRuleType.MIN, ValidationRuleType.MAX):
        number = to_number(value)
        bound = to_number(rule.value)
        if number is None or bound is None:
            return True
        if rule_type == ValidationRuleType.MIN:
            return number >= bound
        return number <= bound

    return True


def validate_field(field: FieldDefinition, value: Any) -> Optional[str]:
    """
    Validate one answer against a field.

    Returns the error message, or None when the answer is acceptable. A
    missing required answer short-circuits the rule list; otherwise rules run
    in declared order and the first failure wins.
    """
    if field.is_required:
        # An unchecked checkbox is not an answer
        unchecked = field.field_type == FieldType.CHECKBOX and value is False
        if unchecked or is_empty(value):
            return f"{field.label} is required"

    for rule in field.validation:
        if not _check_rule(field, rule, value):
            return rule.message

    return None


def validate_form(fields: Iterable[FieldDefinition], answers: Dict[str, Any]) -> Dict[str, str]:
    """
    Validate every visible field and collect errors keyed by field id.

    An empty dict means the form is valid.
    """
    errors: Dict[str, str] = {}
    for field in fields:
        error = validate_field(field, answers.get(field.id))
        if error is not None:
            errors[field.id] = error
    return errors
