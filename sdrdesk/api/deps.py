"""SDR Desk — Shared Route Dependencies."""

from fastapi import Depends
from sqlmodel import Session

from sdrdesk.connectors.resend.client import ResendClient
from sdrdesk.database import get_session
from sdrdesk.reports.gateway import ReportGateway


def get_gateway(session: Session = Depends(get_session)) -> ReportGateway:
    return ReportGateway(session)


async def get_notifier():
    """Dependency — yields an email client, closed after the request."""
    client = ResendClient()
    try:
        yield client
    finally:
        await client.close()
