# catalog_admin/domain/catalog/classifier.py
import enum
import re

# dense alphanumeric token with no separators, at least 4 characters
PROVIDER_ID_PATTERN = re.compile(r"^[A-Za-z0-9]{4,}$")


class IdentifierKind(str, enum.Enum):
    PROVIDER_ID_LIKELY = "provider_id_likely"
    FREE_TEXT = "free_text"


def classify(term: str) -> IdentifierKind:
    """Guess whether `term` is a provider part number or free text.

    This is a heuristic: callers must fall back to free-text search when a
    provider-style lookup finds nothing.
    """
    if PROVIDER_ID_PATTERN.match(term.strip()):
        return IdentifierKind.PROVIDER_ID_LIKELY
    return IdentifierKind.FREE_TEXT
