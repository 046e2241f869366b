"""
Services module for the ticket intake pipeline and external API clients.
"""

from app.services.field_catalog import (
    FieldCatalog,
    normalize_form_fields,
    parse_field_definition
)
from app.services.forms import (
    merge_fields,
    normalize_field_type,
    validate_field,
    validate_form,
    widget_for
)
from app.services.assignment import (
    AssignmentResolver,
    AssignmentResult,
    resolve_assignment,
    score_rule,
    select_rule
)
from app.services.sla import (
    compute_sla_deadline,
    format_ticket_number
)
from app.services.tickets import (
    TicketService,
    TicketFilters,
    TicketReferenceError,
    can_change_status
)
from app.services.analyzer import (
    FeedbackAnalyzer,
    get_analyzer
)
from app.services.supabase_auth import (
    SupabaseAuthClient,
    SupabaseAuthError,
    get_auth_client
)
from app.services.escalation import EscalationService

__all__ = [
    "FieldCatalog",
    "normalize_form_fields",
    "parse_field_definition",
    "merge_fields",
    "normalize_field_type",
    "validate_field",
    "validate_form",
    "widget_for",
    "AssignmentResolver",
    "AssignmentResult",
    "resolve_assignment",
    "score_rule",
    "select_rule",
    "compute_sla_deadline",
    "format_ticket_number",
    "TicketService",
    "TicketFilters",
    "TicketReferenceError",
    "can_change_status",
    "FeedbackAnalyzer",
    "get_analyzer",
    "SupabaseAuthClient",
    "SupabaseAuthError",
    "get_auth_client",
    "EscalationService",
]
