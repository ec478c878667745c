"""JSON schema and save-time validation for the company reminder policy."""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Mapping

from jsonschema import Draft202012Validator

from invoice_engine.calc.errors import ConfigurationError
from invoice_engine.calc.models import ReminderPolicy

_FEE = {"type": "number", "minimum": 0}
_DAYS = {"type": "integer", "minimum": 0}

REMINDER_POLICY_SCHEMA: dict = {
    "type": "object",
    "required": ["enabled", "days_after_due", "days_between_stages"],
    "additionalProperties": False,
    "properties": {
        "enabled": {"type": "boolean"},
        "days_after_due": _DAYS,
        "days_between_stages": _DAYS,
        "fee_stage1": _FEE,
        "fee_stage2": _FEE,
        "fee_stage3": _FEE,
    },
}

validator = Draft202012Validator(REMINDER_POLICY_SCHEMA)


def _plain(payload: Mapping[str, Any]) -> dict[str, Any]:
    # jsonschema's "number" does not cover Decimal
    return {k: float(v) if isinstance(v, Decimal) else v for k, v in payload.items()}


def validate_policy(payload: Mapping[str, Any]) -> ReminderPolicy:
    """Validate a reminder policy before it is saved.

    Raises ``ConfigurationError`` listing every violation. Evaluation never
    re-checks the policy, so this is the only gate.
    """
    data = _plain(payload)
    errors = sorted(validator.iter_errors(data), key=lambda e: list(e.path))
    if errors:
        messages = [
            f"{'.'.join(str(p) for p in e.path) or 'policy'}: {e.message}" for e in errors
        ]
        raise ConfigurationError("Invalid reminder policy: " + "; ".join(messages), messages)
    fees = {k: Decimal(str(payload[k])) for k in ("fee_stage1", "fee_stage2", "fee_stage3") if k in payload}
    return ReminderPolicy(
        enabled=payload["enabled"],
        days_after_due=payload["days_after_due"],
        days_between_stages=payload["days_between_stages"],
        **fees,
    )
