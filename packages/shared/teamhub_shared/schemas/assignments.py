"""Booking assignment-reason schemas."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel


class AssignmentReasonEnum(str, Enum):
    ROUTING_FORM_ROUTING = "ROUTING_FORM_ROUTING"
    ROUTING_FORM_ROUTING_FALLBACK = "ROUTING_FORM_ROUTING_FALLBACK"
    REROUTED = "REROUTED"
    SALESFORCE_ASSIGNMENT = "SALESFORCE_ASSIGNMENT"


class RecordedReason(BaseModel):
    """Outcome of recording an assignment reason.

    ``reason_enum``/``reason_string`` describe the durable row. ``response_updated``
    reports the best-effort routing-form propagation: None when no response id
    was given, False when the update failed or matched no row.
    """

    reason_enum: AssignmentReasonEnum
    reason_string: str
    response_updated: Optional[bool] = None
