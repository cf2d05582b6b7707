# pulse/celery_worker.py
from celery import Celery

from pulse.utils.settings import (
    CELERY_BROKER_URL,
    CELERY_RESULT_BACKEND,
    CELERY_TASK_ALWAYS_EAGER,
)

celery_app = Celery(
    "pulse",
    broker=CELERY_BROKER_URL,
    backend=CELERY_RESULT_BACKEND,
)

#tasks must be imported explicitly so the worker registers them
celery_app.conf.imports = ("pulse.services.notification_service",)

celery_app.conf.timezone = "UTC"
celery_app.conf.task_serializer = "json"
celery_app.conf.accept_content = ["json"]

#eager mode runs tasks inline (tests, local dev without a broker)
celery_app.conf.task_always_eager = CELERY_TASK_ALWAYS_EAGER
celery_app.conf.task_eager_propagates = False
