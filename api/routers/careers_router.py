import logging

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from fastapi.responses import JSONResponse

from api.dependencies.auth import require_admin
from api.schemas.JobApplicationSchema import JobApplication
from dbase.collections.JobApplicationCollection import JobApplicationCollection
from email_service.smtp_service import send_job_application_email

logger = logging.getLogger(__name__)

careers_router = APIRouter(tags=["careers"])


def _notify_staff(application: dict):
    # Non-blocking: the application is already stored
    try:
        send_job_application_email(application)
    except Exception:
        logger.exception("Failed to send job application notification")


@careers_router.post("/api/careers/applications")
def create_job_application(application: JobApplication, background_tasks: BackgroundTasks):
    """Store a job application and notify staff by email."""
    data = application.model_dump(mode="json")
    try:
        saved = JobApplicationCollection().create(data)
    except Exception as exc:
        logger.exception("Failed to store job application")
        return JSONResponse(
            status_code=500,
            content={"status": "error", "error": "Failed to save application", "details": str(exc)},
        )

    logger.info("Job application %s received for %s", saved["id"], application.job_title)
    background_tasks.add_task(_notify_staff, data)
    return {"status": "ok", "message": "Application submitted successfully", "id": saved["id"]}


@careers_router.get("/api/admin/job-applications")
def list_job_applications(_admin: dict = Depends(require_admin)):
    """List all job applications, newest first."""
    return {"success": True, "items": JobApplicationCollection().list()}


@careers_router.delete("/api/admin/job-applications/{application_id}")
def delete_job_application(application_id: str, _admin: dict = Depends(require_admin)):
    try:
        deleted = JobApplicationCollection().delete(application_id)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid ID format")
    if not deleted:
        raise HTTPException(status_code=404, detail="Application not found")
    logger.info("Job application %s deleted", application_id)
    return {"success": True, "status": "ok"}
