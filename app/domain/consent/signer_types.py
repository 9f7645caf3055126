"""Signer types required by templates and the roles a signature is recorded under"""

import re
from typing import Any, Optional

PARTICIPANT = "PARTICIPANT"
PARENT_GUARDIAN = "PARENT_GUARDIAN"
CHILD = "CHILD"
PARENT_GUARDIAN_CHILD = "PARENT_GUARDIAN_CHILD"

REQUIRED_SIGNER_TYPES = (PARTICIPANT, PARENT_GUARDIAN, CHILD, PARENT_GUARDIAN_CHILD)

# Roles stored on signed documents
SIGNER_CONTEXTS = ("participant", "parent_guardian", "child")

_LEGACY_ALIASES = {
    "PARENT_GUARDING_CHILD": PARENT_GUARDIAN_CHILD,
    "PARENT_GUARDIAN_AND_CHILD": PARENT_GUARDIAN_CHILD,
}


def normalize_text(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    trimmed = value.strip()
    return trimmed or None


def normalize_required_signer_type(value: Any, fallback: str = PARTICIPANT) -> str:
    if not isinstance(value, str):
        return fallback
    normalized = re.sub(r"[\s/-]+", "_", value.strip().upper())
    normalized = _LEGACY_ALIASES.get(normalized, normalized)
    return normalized if normalized in REQUIRED_SIGNER_TYPES else fallback


def normalize_signer_context(value: Any, fallback: str = "participant") -> str:
    if not isinstance(value, str):
        return fallback
    normalized = re.sub(r"[\s/-]+", "_", value.strip().lower())
    return normalized if normalized in SIGNER_CONTEXTS else fallback


def requires_parent(signer_type: str) -> bool:
    return signer_type in (PARENT_GUARDIAN, PARENT_GUARDIAN_CHILD)


def requires_child(signer_type: str) -> bool:
    return signer_type in (CHILD, PARENT_GUARDIAN_CHILD)
