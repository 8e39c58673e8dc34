"""
CivicEye JSON API

Routes:
- GET  /api/stats                  - Aggregate dashboard counts
- GET  /api/properties             - List properties (?status=&limit=)
- GET  /api/properties/{id}        - Single property
- POST /api/properties             - Register a property
- GET  /api/reports                - List reports (?propertyId=&userId=)
- POST /api/reports                - Submit a vacancy report
- POST /api/users                  - Register a reporter
- GET  /api/users/{id}             - Single user with rank and badge
- GET  /api/leaderboard            - Users by points (?limit=)
- GET  /api/tax-notices            - List tax notices (?propertyId=)
- POST /api/tax-notices            - Issue and confirm a tax notice
- POST /api/generate-pdf           - Render a tax notice PDF
- GET  /api/pdf/{id}               - Download a rendered tax notice PDF

Domain errors propagate to the handlers registered in web.app.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import FileResponse, JSONResponse

from core.errors import ConflictError
from core.workflow import CivicWorkflow, DEFAULT_LEADERBOARD_LIMIT
from reporting import NoticeNotConfirmed, TaxNoticePDFGenerator
from web.identity import current_user_id
from web.schemas import (
    GeneratePdfRequest,
    PropertyCreateRequest,
    ReportCreateRequest,
    TaxNoticeCreateRequest,
    UserCreateRequest,
)


# =============================================================================
# Router Setup
# =============================================================================

router = APIRouter(prefix="/api", tags=["api"])

DEGRADED_HEADER = "X-Degraded-Steps"


def get_workflow(request: Request) -> CivicWorkflow:
    """Dependency: the workflow constructed at app startup."""
    return request.app.state.workflow


def get_pdf_generator(request: Request) -> TaxNoticePDFGenerator:
    return request.app.state.pdf_generator


def _created(content: dict, degraded_steps: tuple[str, ...] = ()) -> JSONResponse:
    headers = {DEGRADED_HEADER: ",".join(degraded_steps)} if degraded_steps else None
    return JSONResponse(status_code=201, content=content, headers=headers)


# =============================================================================
# Statistics
# =============================================================================


@router.get("/stats")
async def get_stats(workflow: CivicWorkflow = Depends(get_workflow)):
    return workflow.stats()


# =============================================================================
# Properties
# =============================================================================


@router.get("/properties")
async def list_properties(
    status: Optional[str] = Query(None, description="Exact status, e.g. 'Confirmed Vacant'"),
    limit: Optional[int] = Query(None),
    workflow: CivicWorkflow = Depends(get_workflow),
):
    return [p.to_dict() for p in workflow.list_properties(status=status, limit=limit)]


@router.get("/properties/{property_id}")
async def get_property(property_id: int, workflow: CivicWorkflow = Depends(get_workflow)):
    return workflow.store.get_property(property_id).to_dict()


@router.post("/properties", status_code=201)
async def create_property(
    body: PropertyCreateRequest,
    workflow: CivicWorkflow = Depends(get_workflow),
):
    prop = workflow.register_property(body.to_payload())
    return _created(prop.to_dict())


# =============================================================================
# Reports
# =============================================================================


@router.get("/reports")
async def list_reports(
    property_id: Optional[int] = Query(None, alias="propertyId"),
    user_id: Optional[int] = Query(None, alias="userId"),
    workflow: CivicWorkflow = Depends(get_workflow),
):
    reports = workflow.list_reports(property_id=property_id, user_id=user_id)
    return [r.to_dict() for r in reports]


@router.post("/reports", status_code=201)
async def create_report(
    body: ReportCreateRequest,
    user_id: Optional[int] = Depends(current_user_id),
    workflow: CivicWorkflow = Depends(get_workflow),
):
    """Run the full submission workflow and return the created report."""
    result = workflow.submit_report(body.to_payload(), user_id=user_id)
    return _created(result.report.to_dict(), result.degraded_steps)


# =============================================================================
# Users
# =============================================================================


@router.post("/users", status_code=201)
async def create_user(body: UserCreateRequest, workflow: CivicWorkflow = Depends(get_workflow)):
    user = workflow.register_user(body.to_payload())
    return _created(workflow.get_user_profile(user.id).to_dict())


@router.get("/users/{user_id}")
async def get_user(user_id: int, workflow: CivicWorkflow = Depends(get_workflow)):
    return workflow.get_user_profile(user_id).to_dict()


@router.get("/leaderboard")
async def get_leaderboard(
    limit: Optional[int] = Query(DEFAULT_LEADERBOARD_LIMIT),
    workflow: CivicWorkflow = Depends(get_workflow),
):
    return [ranked.to_dict() for ranked in workflow.leaderboard(limit=limit)]


# =============================================================================
# Tax Notices
# =============================================================================


@router.get("/tax-notices")
async def list_tax_notices(
    property_id: Optional[int] = Query(None, alias="propertyId"),
    workflow: CivicWorkflow = Depends(get_workflow),
):
    return [n.to_dict() for n in workflow.list_tax_notices(property_id=property_id)]


@router.post("/tax-notices", status_code=201)
async def create_tax_notice(
    body: TaxNoticeCreateRequest,
    workflow: CivicWorkflow = Depends(get_workflow),
):
    result = workflow.issue_tax_notice(body.to_payload())
    return _created(result.notice.to_dict(), result.degraded_steps)


# =============================================================================
# PDF Documents
# =============================================================================


def _render_notice(
    notice_id: int,
    workflow: CivicWorkflow,
    generator: TaxNoticePDFGenerator,
):
    notice = workflow.store.get_tax_notice(notice_id)
    prop = workflow.store.get_property(notice.property_id)
    result = generator.render(notice, prop)
    if isinstance(result, NoticeNotConfirmed):
        raise ConflictError(result.message)
    return result


@router.post("/generate-pdf")
async def generate_pdf(
    body: GeneratePdfRequest,
    workflow: CivicWorkflow = Depends(get_workflow),
    generator: TaxNoticePDFGenerator = Depends(get_pdf_generator),
):
    """Render the notice PDF and return where to download it."""
    result = _render_notice(body.taxNoticeId, workflow, generator)
    return {"pdfUrl": f"/api/pdf/{result.notice_id}"}


@router.get("/pdf/{notice_id}")
async def download_pdf(
    notice_id: int,
    workflow: CivicWorkflow = Depends(get_workflow),
    generator: TaxNoticePDFGenerator = Depends(get_pdf_generator),
):
    path = generator.path_for(notice_id)
    if not path.exists():
        path = _render_notice(notice_id, workflow, generator).path
    return FileResponse(
        path,
        media_type="application/pdf",
        filename=f"tax-notice-{notice_id}.pdf",
    )
