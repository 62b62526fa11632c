"""
Assignment reason recorder: keeps one human-readable explanation per
booking of why its organizer was chosen.

Recording is two steps:
- a transaction that deletes any previous reason for the booking and
  inserts the new one (failures propagate);
- a best-effort copy of the sentence onto the denormalized routing-form
  response (failures are logged and reported in the result only).

Organizer/team lookups run concurrently in their own short sessions, so no
transaction is open while they are in flight.
"""

from __future__ import annotations

import asyncio
from typing import Optional

import structlog
from sqlalchemy import delete, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from app.core.config import get_settings
from app.core.database import async_session_factory, get_session_context
from app.models.assignment_reason import AssignmentReason, RoutingFormResponseDenormalized
from app.models.team import Team
from app.models.user import User
from teamhub_shared.schemas.assignments import AssignmentReasonEnum, RecordedReason

log = structlog.get_logger()


def routing_form_sentence(
    organizer_label: str,
    team_name: Optional[str] = None,
    *,
    is_rerouting: bool = False,
    rerouted_by_email: Optional[str] = None,
) -> str:
    team_label = f" in {team_name}" if team_name else ""
    reroute_label = ""
    if is_rerouting:
        reroute_label = " after reroute" + (f" by {rerouted_by_email}" if rerouted_by_email else "")
    return f"Assigned to {organizer_label}{team_label} via routing form{reroute_label}."


def crm_sentence(
    crm_app_slug: Optional[str] = None,
    team_member_email: Optional[str] = None,
    record_type: Optional[str] = None,
    record_id: Optional[str] = None,
) -> str:
    owner_label = f"owner {team_member_email}" if team_member_email else "CRM owner"
    source_label = f"from {crm_app_slug}" if crm_app_slug else "from CRM"
    record_label = " ".join(part for part in (record_type, record_id) if part)
    record_phrase = f" matched {record_label}" if record_label else ""
    return f"{owner_label} {source_label}{record_phrase} assigned this booking."


class AssignmentReasonRecorder:
    def __init__(
        self,
        session_factory: async_sessionmaker = async_session_factory,
        *,
        max_attempts: Optional[int] = None,
    ):
        self.session_factory = session_factory
        self.max_attempts = max_attempts or get_settings().assignment_reason_max_attempts

    # -- lookups ------------------------------------------------------------

    async def _find_user(self, user_id: int) -> Optional[User]:
        async with self.session_factory() as session:
            return await session.get(User, user_id)

    async def _find_team(self, team_id: Optional[int]) -> Optional[Team]:
        if not team_id:
            return None
        async with self.session_factory() as session:
            return await session.get(Team, team_id)

    # -- persistence --------------------------------------------------------

    async def _persist(
        self, booking_id: int, reason_enum: AssignmentReasonEnum, reason_string: str
    ) -> None:
        """Replace the booking's reason row.

        Two recorders racing on the same booking can both delete and then
        collide on the unique booking_id; the loser retries.
        """
        for attempt in range(1, self.max_attempts + 1):
            try:
                async with get_session_context(self.session_factory) as session:
                    await session.execute(
                        delete(AssignmentReason).where(AssignmentReason.booking_id == booking_id)
                    )
                    session.add(
                        AssignmentReason(
                            booking_id=booking_id,
                            reason_enum=reason_enum.value,
                            reason_string=reason_string,
                        )
                    )
                return
            except IntegrityError:
                if attempt == self.max_attempts:
                    raise
                log.info(
                    "assignment_reason.retry",
                    booking_id=booking_id,
                    attempt=attempt,
                )

    async def _update_routing_response(
        self, routing_form_response_id: Optional[int], reason_string: str
    ) -> Optional[bool]:
        if not routing_form_response_id:
            return None
        try:
            async with get_session_context(self.session_factory) as session:
                result = await session.execute(
                    update(RoutingFormResponseDenormalized)
                    .where(RoutingFormResponseDenormalized.id == routing_form_response_id)
                    .values(booking_assignment_reason=reason_string)
                )
        except SQLAlchemyError as exc:
            log.warning(
                "assignment_reason.response_update_failed",
                routing_form_response_id=routing_form_response_id,
                error=str(exc),
            )
            return False

        if result.rowcount == 0:
            log.warning(
                "assignment_reason.response_update_failed",
                routing_form_response_id=routing_form_response_id,
                error="routing form response not found",
            )
            return False
        return True

    async def _record(
        self,
        booking_id: int,
        reason_enum: AssignmentReasonEnum,
        reason_string: str,
        routing_form_response_id: Optional[int],
    ) -> RecordedReason:
        await self._persist(booking_id, reason_enum, reason_string)
        response_updated = await self._update_routing_response(
            routing_form_response_id, reason_string
        )
        log.info(
            "assignment_reason.recorded",
            booking_id=booking_id,
            reason_enum=reason_enum.value,
            response_updated=response_updated,
        )
        return RecordedReason(
            reason_enum=reason_enum,
            reason_string=reason_string,
            response_updated=response_updated,
        )

    # -- entry points -------------------------------------------------------

    async def routing_form_route(
        self,
        booking_id: int,
        organizer_id: int,
        *,
        routing_form_response_id: Optional[int] = None,
        team_id: Optional[int] = None,
        is_rerouting: bool = False,
        rerouted_by_email: Optional[str] = None,
    ) -> RecordedReason:
        organizer, team = await asyncio.gather(
            self._find_user(organizer_id), self._find_team(team_id)
        )

        organizer_label = (
            (organizer.name or organizer.email) if organizer else None
        ) or f"user-{organizer_id}"

        if organizer is None:
            reason_enum = AssignmentReasonEnum.ROUTING_FORM_ROUTING_FALLBACK
        elif is_rerouting:
            reason_enum = AssignmentReasonEnum.REROUTED
        else:
            reason_enum = AssignmentReasonEnum.ROUTING_FORM_ROUTING

        reason_string = routing_form_sentence(
            organizer_label,
            team.name if team else None,
            is_rerouting=is_rerouting,
            rerouted_by_email=rerouted_by_email,
        )
        return await self._record(booking_id, reason_enum, reason_string, routing_form_response_id)

    async def crm_ownership(
        self,
        booking_id: int,
        *,
        crm_app_slug: Optional[str] = None,
        team_member_email: Optional[str] = None,
        record_type: Optional[str] = None,
        record_id: Optional[str] = None,
        routing_form_response_id: Optional[int] = None,
    ) -> RecordedReason:
        reason_string = crm_sentence(crm_app_slug, team_member_email, record_type, record_id)
        return await self._record(
            booking_id,
            AssignmentReasonEnum.SALESFORCE_ASSIGNMENT,
            reason_string,
            routing_form_response_id,
        )
