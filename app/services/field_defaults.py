"""
Built-in taxonomy data.

GLOBAL_FIELDS is stored in the same embedded JSON shape as a subcategory's
`form_fields`, so it goes through the same parser as data read from the
database. It is served when the Global subcategory has no fields of its own
and is what `scripts/seed.py` writes.
"""

LOCATIONS = [
    "Kwality House Kemps Corner",
    "Kenkre House",
    "South United Football Club",
    "Supreme HQ Bandra",
    "WeWork Prestige Central",
    "WeWork Galaxy",
    "The Studio by Copper + Cloves",
    "Pop-up",
]

# name, description, color, icon, default department
DEFAULT_CATEGORIES = [
    ("Global", "Universal fields applicable to all tickets", "#64748b", "Globe", None),
    ("Booking & Technology", "App, website, and booking system issues", "#3b82f6", "Smartphone", "operations"),
    ("Customer Service", "Service quality and communication issues", "#10b981", "Users", "client_success"),
    ("Facilities & Equipment", "Physical space, equipment, and infrastructure issues", "#f59e0b", "Building", "facilities"),
    ("Class & Instruction", "Instructor performance and class-related issues", "#8b5cf6", "GraduationCap", "training"),
    ("Membership & Billing", "Account, payment, and membership issues", "#ef4444", "CreditCard", "finance"),
    ("Health & Safety", "Safety incidents and health-related concerns", "#dc2626", "Shield", "management"),
    ("Miscellaneous", "Other issues not covered by main categories", "#6b7280", "MoreHorizontal", "operations"),
]


def _global(uid, label, field_type, description, required, options=None, validation=None):
    field = {
        "id": uid,
        "uniqueId": uid,
        "label": label,
        "fieldType": field_type,
        "description": description,
        "isRequired": required,
        "isHidden": False,
    }
    if options:
        field["options"] = options
    if validation:
        field["validation"] = validation
    return field


GLOBAL_FIELDS = [
    _global("GLB-001", "Ticket ID", "Auto-generated", "Unique identifier for each ticket", True),
    _global("GLB-002", "Date & Time Reported", "DateTime", "When the issue was reported to staff", True,
            ["Auto-populated"]),
    _global("GLB-003", "Date & Time of Incident", "DateTime", "When the issue actually occurred", True,
            ["Manual entry"]),
    _global("GLB-004", "Location", "Dropdown", "Studio location where issue occurred", True, LOCATIONS),
    _global("GLB-005", "Reported By (Staff)", "Dropdown", "Staff member logging the ticket", True,
            ["Associates list"]),
    _global("GLB-006", "Client Name", "Text", "Name of the client reporting issue", True,
            ["Free text entry"]),
    _global("GLB-007", "Client Email", "Email", "Client's email address", False, ["Email format"]),
    _global("GLB-008", "Client Phone", "Phone", "Client's contact number", False, ["Phone number format"]),
    _global("GLB-009", "Client Status", "Dropdown", "Client's membership status", True, [
        "Existing Active",
        "Existing Inactive",
        "New Prospect",
        "Trial Client",
        "Guest (Hosted Class)",
    ]),
    _global("GLB-010", "Priority", "Dropdown", "Urgency level of the issue", True, [
        "Low (log only)",
        "Medium (48hrs)",
        "High (24hrs)",
        "Critical (immediate)",
    ]),
    _global("GLB-011", "Department Routing", "Dropdown", "Which department should handle this", True, [
        "Operations",
        "Facilities",
        "Training",
        "Sales",
        "Client Success",
        "Marketing",
        "Finance",
        "Management",
    ]),
    _global("GLB-012", "Issue Description", "Long Text", "Detailed description of the issue", True,
            ["Free text area, min 50 characters"],
            [{"type": "minLength", "value": 50, "message": "Description must be at least 50 characters"}]),
    _global("GLB-013", "Action Taken Immediately", "Long Text", "What was done on the spot", False,
            ["Free text area"]),
    _global("GLB-014", "Client Mood/Sentiment", "Dropdown", "Client's emotional state", False, [
        "Calm",
        "Frustrated",
        "Angry",
        "Disappointed",
        "Understanding",
    ]),
    _global("GLB-015", "Follow-up Required", "Checkbox", "Does this need additional follow-up", True,
            ["Yes/No"]),
    _global("GLB-016", "Attachments", "File Upload", "Supporting documentation", False,
            ["Images, PDFs, screenshots"]),
]
