"""
Celery Configuration for qrtrack
Optional background backend (BACKGROUND_BACKEND=celery) with a Redis broker
"""
import os
from celery import Celery

# Get Redis URL from environment or use local default
REDIS_URL = os.environ.get('REDIS_URL', 'redis://localhost:6379/0')

# Create Celery instance
celery = Celery(
    'qrtrack',
    broker=REDIS_URL,
    backend=REDIS_URL,
    include=['qrtrack.tasks']
)

# Celery Configuration
celery.conf.update(
    task_serializer='json',
    accept_content=['json'],
    result_serializer='json',
    timezone='UTC',
    enable_utc=True,
    task_ignore_result=True,  # fire-and-forget jobs
    task_time_limit=60,
    task_soft_time_limit=50,
    worker_prefetch_multiplier=4,
    worker_max_tasks_per_child=1000,
)

# Task routing
celery.conf.task_routes = {
    'qrtrack.tasks.run_background_job': {'queue': 'scans'},
}

if __name__ == '__main__':
    celery.start()
