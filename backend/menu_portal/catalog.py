# menu_portal/catalog.py
"""
Fixed enumerations shared by both journeys. Which menu categories or add-on
templates apply to a business type is a UI concern; the backend only needs
the type ids and the document requirements.
"""

# Menu / assets journey
BUSINESS_TYPES = [
    "restaurants_cafes",
    "beauty_fragrance",
    "electronics",
    "pets",
    "garden",
    "toys_kids",
    "fashion_accessories",
    "other",
]

# Documents journey: business type -> required document kinds (display order)
REQUIRED_DOCUMENTS = {
    "home": ["Home_License", "IBAN_Stamped", "QID"],
    "commercial": ["CR", "Trade_License", "Computer_Card", "IBAN_Stamped", "QID"],
}

DOCS_BUSINESS_TYPES = list(REQUIRED_DOCUMENTS.keys())

# Every known document kind. Longer names first so prefix matching of stored
# files ("Trade_License_..." vs a shorter kind) stays unambiguous.
DOCUMENT_TYPES = sorted(
    {kind for kinds in REQUIRED_DOCUMENTS.values() for kind in kinds},
    key=len,
    reverse=True,
)

ALLOWED_DOCUMENT_MIME_TYPES = {"application/pdf", "image/jpeg", "image/jpg", "image/png"}

WEEK_DAYS = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]

def required_documents(business_type: str) -> list[str]:
    return list(REQUIRED_DOCUMENTS.get(business_type, []))

def document_type_of(filename: str) -> str | None:
    """Maps a stored document filename back to its kind, e.g. 'QID_Brand_1.pdf' -> 'QID'."""
    for kind in DOCUMENT_TYPES:
        if filename.startswith(kind + "_"):
            return kind
    return None
