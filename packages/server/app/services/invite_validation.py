"""
Bulk invite validation: normalizes, deduplicates and checks a batch of
invite identifiers before anything is written.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Sequence, Union

from pydantic import ValidationError

from app.core.errors import EmptyInvitee, InvalidEmailFormat, InvalidInviteRole, TooManyInvitees
from teamhub_shared.schemas.common import MembershipRole, parse_fixed_role
from teamhub_shared.schemas.invitations import (
    InviteeEntry,
    is_valid_email,
    looks_like_email,
    normalize_identifier,
    split_identifiers,
)

RawInvitees = Union[str, Sequence[Union[str, InviteeEntry, dict]]]


@dataclass
class Invitee:
    identifier: str
    role: Optional[MembershipRole] = None  # None: use the batch role

    @property
    def is_email(self) -> bool:
        return looks_like_email(self.identifier)


@dataclass
class InviteBatch:
    invitees: list[Invitee] = field(default_factory=list)
    role: MembershipRole = MembershipRole.MEMBER

    @property
    def identifiers(self) -> list[str]:
        return [invitee.identifier for invitee in self.invitees]

    def role_for(self, invitee: Invitee) -> MembershipRole:
        return invitee.role or self.role


class BulkInviteValidator:
    """Validate a raw invite batch.

    Accepts a single free-text string, a list of strings, structured
    ``{email, role}`` entries, or a mix. Free text is split on newlines,
    commas and semicolons; separator-only gaps are ignored. Entries are
    deduplicated by normalized identifier, first occurrence winning.
    """

    def __init__(self, max_invites: int):
        self.max_invites = max_invites

    def validate(self, raw: RawInvitees, role: Optional[str] = None) -> InviteBatch:
        invitees = self._collect(raw)
        if not invitees:
            raise EmptyInvitee()

        if len(invitees) > self.max_invites:
            raise TooManyInvitees(self.max_invites)

        invalid = [
            invitee.identifier
            for invitee in invitees
            if invitee.is_email and not is_valid_email(invitee.identifier)
        ]
        if invalid:
            valid = [i.identifier for i in invitees if i.identifier not in invalid]
            raise InvalidEmailFormat(invalid, valid)

        return InviteBatch(
            invitees=invitees,
            role=parse_fixed_role(role) or MembershipRole.MEMBER,
        )

    def _collect(self, raw: RawInvitees) -> list[Invitee]:
        seen: dict[str, Invitee] = {}

        def add(invitee: Invitee) -> None:
            seen.setdefault(invitee.identifier, invitee)

        if isinstance(raw, str):
            for piece in split_identifiers(raw):
                identifier = normalize_identifier(piece)
                if identifier:
                    add(Invitee(identifier))
            return list(seen.values())

        for item in raw:
            if isinstance(item, str):
                if not item.strip():
                    raise EmptyInvitee()
                for piece in split_identifiers(item):
                    identifier = normalize_identifier(piece)
                    if identifier:
                        add(Invitee(identifier))
            else:
                add(self._structured(item))
        return list(seen.values())

    def _structured(self, item: Union[InviteeEntry, dict]) -> Invitee:
        if isinstance(item, InviteeEntry):
            entry = item
        else:
            try:
                entry = InviteeEntry.model_validate(item)
            except ValidationError as exc:
                bad_fields = {error["loc"][0] for error in exc.errors() if error["loc"]}
                if "email" in bad_fields:
                    raise EmptyInvitee()
                raise InvalidInviteRole(str(item.get("role")))
        email = normalize_identifier(entry.email)
        if email is None:
            raise EmptyInvitee()
        if not is_valid_email(email):
            raise InvalidEmailFormat([email])
        role = parse_fixed_role(entry.role)
        if role is None:
            raise InvalidInviteRole(entry.role)
        return Invitee(email, role)
