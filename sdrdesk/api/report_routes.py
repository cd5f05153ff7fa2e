"""SDR Desk — Report Submission & Recovery Routes.

Both endpoints answer with `{success: ...}` bodies rather than FastAPI's
default `{detail: ...}` errors, matching what the submission form expects.
"""

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse

from sdrdesk.api.deps import get_gateway, get_notifier
from sdrdesk.core.errors import GatewayError, SubmissionError, ValidationError
from sdrdesk.core.logging import get_logger
from sdrdesk.models.report_models import RecoveryReport
from sdrdesk.reports.gateway import ReportGateway
from sdrdesk.reports.pipeline import submit_report
from sdrdesk.reports.recovery import recover_missing_meetings

logger = get_logger("api.reports")

router = APIRouter(tags=["Reports"])

RECOVERY_FAILED_MESSAGE = "Failed to load reports for recovery"


def _failure(status_code: int, error: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": error})


@router.options("/send-report-email", include_in_schema=False)
@router.options("/recovery-meeting-details", include_in_schema=False)
async def preflight():
    """Bare preflight requests get an empty 200."""
    return Response(status_code=200)


@router.post("/send-report-email")
async def send_report_email(
    request: Request,
    gateway: ReportGateway = Depends(get_gateway),
    notifier=Depends(get_notifier),
):
    """Store an SDR's daily report with its meetings and email a summary."""
    try:
        payload = await request.json()
    except ValueError:
        return _failure(400, str(ValidationError(["body must be valid JSON"])))

    try:
        result = await submit_report(
            payload,
            gateway,
            notifier,
            user_agent=request.headers.get("user-agent"),
        )
    except SubmissionError as e:
        return _failure(e.status_code, str(e))

    return result.to_wire()


@router.post("/recovery-meeting-details")
async def recovery_meeting_details(gateway: ReportGateway = Depends(get_gateway)):
    """Rebuild missing meeting details from the submission audit trail."""
    try:
        outcomes = recover_missing_meetings(gateway)
    except GatewayError as e:
        logger.error(f"Recovery aborted: {e}", extra={"endpoint": "recovery"})
        return _failure(500, RECOVERY_FAILED_MESSAGE)

    return RecoveryReport(
        message="Recovery finished",
        results=outcomes,
    ).to_wire()
