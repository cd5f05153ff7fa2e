"""SDR Desk — Report Payload Validator.

Pure checks over the raw JSON body. Every rule runs; failures are collected so
the caller can show them all at once.
"""

import re
from dataclasses import dataclass, field
from typing import Any, List

DATE_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}")

COUNT_FIELDS = ("reunioesAgendadas", "reunioesRealizadas")
MEETING_REQUIRED_FIELDS = (
    "dataAgendamento",
    "horarioAgendamento",
    "status",
    "vendedorResponsavel",
)


@dataclass
class ValidationResult:
    valid: bool
    errors: List[str] = field(default_factory=list)


def is_blank(value: Any) -> bool:
    """True for None, non-strings and whitespace-only strings."""
    return not isinstance(value, str) or not value.strip()


def is_valid_date(value: Any) -> bool:
    """True when value is a string shaped exactly like YYYY-MM-DD."""
    return isinstance(value, str) and DATE_PATTERN.fullmatch(value) is not None


def is_count(value: Any) -> bool:
    """True for non-negative whole numbers. Booleans are not counts."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return value >= 0 and float(value).is_integer()


def responsible_rep_of(meeting: dict) -> Any:
    """Older clients send the responsible rep as `nomeVendedor`."""
    if "vendedorResponsavel" in meeting:
        return meeting["vendedorResponsavel"]
    return meeting.get("nomeVendedor")


def _validate_meeting(index: int, meeting: Any) -> List[str]:
    label = f"meeting {index}"
    if not isinstance(meeting, dict):
        return [f"{label}: must be an object"]

    lead = meeting.get("nomeLead")
    if lead is not None and not isinstance(lead, str):
        return [f"{label}: nomeLead must be a string"]
    if is_blank(lead):
        # Incomplete UI row; dropped later, not an error
        return []

    errors = []
    for name in MEETING_REQUIRED_FIELDS:
        value = (
            responsible_rep_of(meeting)
            if name == "vendedorResponsavel"
            else meeting.get(name)
        )
        if value is None:
            errors.append(f"{label}: {name} required")
        elif not isinstance(value, str):
            errors.append(f"{label}: {name} must be a string")
    return errors


def validate_report_payload(payload: Any) -> ValidationResult:
    """Check a submission payload's structure and field values."""
    if not isinstance(payload, dict):
        return ValidationResult(valid=False, errors=["payload must be a JSON object"])

    errors: List[str] = []

    if is_blank(payload.get("vendedor")):
        errors.append("vendedor is required")

    registration_date = payload.get("dataRegistro")
    if registration_date is None or registration_date == "":
        errors.append("dataRegistro is required")
    elif not is_valid_date(registration_date):
        errors.append("dataRegistro must use the YYYY-MM-DD format")

    for name in COUNT_FIELDS:
        if not is_count(payload.get(name)):
            errors.append(f"{name} must be a whole number >= 0")

    meetings = payload.get("reunioes")
    if meetings is not None:
        if not isinstance(meetings, list):
            errors.append("reunioes must be a list")
        else:
            for index, meeting in enumerate(meetings, 1):
                errors.extend(_validate_meeting(index, meeting))

    return ValidationResult(valid=not errors, errors=errors)
