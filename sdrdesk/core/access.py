"""SDR Desk — Request Session & Access Levels.

Identity arrives in headers set by the upstream auth proxy. The access level
is resolved once per request and carried on a RequestSession; nothing is
cached across requests.
"""

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header, HTTPException
from sqlmodel import Session

from sdrdesk.config import settings
from sdrdesk.core.errors import GatewayError
from sdrdesk.core.logging import get_logger
from sdrdesk.database import get_session
from sdrdesk.models.profile_models import AccessLevel, Profile
from sdrdesk.reports.gateway import ReportGateway

logger = get_logger("core.access")


@dataclass
class RequestSession:
    user_id: Optional[str]
    email: Optional[str]
    access_level: AccessLevel

    @property
    def is_admin(self) -> bool:
        return self.access_level == AccessLevel.ADMIN

    @property
    def can_read_dashboard(self) -> bool:
        return self.access_level in (AccessLevel.ADMIN, AccessLevel.AI)


async def resolve_access_level(
    gateway: ReportGateway, user_id: str, email: Optional[str] = None
) -> AccessLevel:
    """Look up a user's access level, defaulting to USER on any store error.

    Emails listed in settings.admin_emails are always admins; their profile is
    created or upgraded to match.
    """
    try:
        profile = gateway.get_profile(user_id)
        if email and email.lower() in {e.lower() for e in settings.admin_emails}:
            if profile is None:
                gateway.save_profile(
                    Profile(id=user_id, email=email, access_level=AccessLevel.ADMIN.value)
                )
            elif profile.access_level != AccessLevel.ADMIN.value:
                profile.access_level = AccessLevel.ADMIN.value
                gateway.save_profile(profile)
            return AccessLevel.ADMIN

        if profile is None:
            return AccessLevel.USER
        return AccessLevel(profile.access_level)
    except GatewayError as e:
        logger.error(f"Access level check failed for {user_id}: {e.detail}")
        return AccessLevel.USER
    except ValueError:
        logger.warning(f"Unknown access level stored for {user_id}")
        return AccessLevel.USER


async def get_request_session(
    x_user_id: Optional[str] = Header(default=None),
    x_user_email: Optional[str] = Header(default=None),
    session: Session = Depends(get_session),
) -> RequestSession:
    """Dependency: the caller's identity and access level for this request."""
    if not x_user_id:
        return RequestSession(user_id=None, email=x_user_email, access_level=AccessLevel.USER)
    level = await resolve_access_level(ReportGateway(session), x_user_id, x_user_email)
    return RequestSession(user_id=x_user_id, email=x_user_email, access_level=level)


async def require_admin(
    request_session: RequestSession = Depends(get_request_session),
) -> RequestSession:
    if not request_session.is_admin:
        raise HTTPException(status_code=403, detail="Admin access required")
    return request_session


async def require_reader(
    request_session: RequestSession = Depends(get_request_session),
) -> RequestSession:
    if not request_session.can_read_dashboard:
        raise HTTPException(status_code=403, detail="Dashboard access required")
    return request_session
