"""
Background jobs for qrtrack

Jobs are registered by name so the thread-pool runner and the Celery worker
execute exactly the same functions.
"""
import sys

from qrtrack.celery_app import celery
from qrtrack.extensions import db
from qrtrack.helpers import scan_pipeline


def log_task(msg):
    """Helper function for task logging"""
    print(f"[QRTRACK_TASK] {msg}", file=sys.stderr, flush=True)


JOBS = {
    scan_pipeline.JOB_PROCESS: scan_pipeline.process_scan_job,
    scan_pipeline.JOB_DISPATCH: scan_pipeline.dispatch_event_job,
    scan_pipeline.JOB_RECORD: scan_pipeline.record_scan_job,
}


def run_job(job_name, kwargs):
    """
    Run a registered job inside the current app context.

    This is the exception boundary for background work: failures are logged
    and swallowed so nothing ever reaches the (already answered) request.
    """
    job = JOBS.get(job_name)
    if job is None:
        log_task(f"ERROR: Unknown job {job_name}")
        return None

    try:
        return job(**kwargs)
    except Exception as e:
        import traceback
        log_task(f"ERROR in {job_name}: {e}")
        log_task(traceback.format_exc())
        db.session.rollback()
        return None
    finally:
        db.session.remove()


@celery.task(bind=True, name='qrtrack.tasks.run_background_job')
def run_background_job(self, job_name, kwargs):
    """
    Celery entry point for BACKGROUND_BACKEND=celery

    Args:
        job_name: key in JOBS
        kwargs: JSON-serializable job arguments
    """
    from qrtrack import create_app

    # Create Flask app context (required for DB access)
    app = create_app()

    with app.app_context():
        log_task(f"Running {job_name} (task {self.request.id})")
        run_job(job_name, kwargs)
