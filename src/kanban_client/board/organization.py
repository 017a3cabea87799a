# src/kanban_client/board/organization.py

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

from ..api.errors import ApiError, friendly_error_message
from ..core.ports import Notifier, OrganizationApi
from .models import User, normalize_id

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class Organization:
    id: str
    name: str
    users: list[User] = field(default_factory=list)


@dataclass(slots=True, frozen=True)
class InviteResult:
    email: str
    email_sent: bool
    # Shareable link, given by the backend when the email could not be sent.
    link: str | None = None


async def load_organization(api: OrganizationApi, notifier: Notifier) -> Organization | None:
    try:
        org_raw, users_raw = await asyncio.gather(
            api.get_my_organization(),
            api.list_organization_users(),
        )
    except ApiError:
        logger.exception("Failed to load organization")
        notifier.error("Failed to load organization")
        return None

    org_raw = org_raw or {}
    return Organization(
        id=normalize_id(org_raw.get("_id") or org_raw.get("id")),
        name=str(org_raw.get("name") or ""),
        users=[User.from_api(u) for u in users_raw if isinstance(u, dict)],
    )


async def invite_member(api: OrganizationApi, notifier: Notifier, email: str) -> InviteResult | None:
    """
    Invite someone to the caller's organization by email.

    The backend records the invitation even when mailing it fails; in that
    case the result carries the link to hand over some other way.
    """
    email = email.strip()
    if "@" not in email:
        notifier.error("Please enter a valid email address")
        return None

    try:
        data = await api.invite_to_organization(email) or {}
    except ApiError as e:
        logger.warning("Invitation to %s failed: %s", email, e)
        notifier.error(friendly_error_message(e, "Failed to send invitation"))
        return None

    if data.get("emailSent"):
        notifier.success(f"Invitation email sent successfully to {email}")
        return InviteResult(email=email, email_sent=True)

    invitation = data.get("invitation") or {}
    link = invitation.get("invitationLink") if isinstance(invitation, dict) else None
    logger.warning("Invitation for %s created but not mailed: %s", email, data.get("emailError"))
    notifier.success("Invitation created! Email failed to send.")
    return InviteResult(email=email, email_sent=False, link=link or None)
