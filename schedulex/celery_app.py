"""
Celery configuration for background schedule optimization
"""

from celery import Celery

from .config import REDIS_URL

celery_app = Celery(
    "schedulex",
    broker=REDIS_URL,  # Redis as message broker
    backend=REDIS_URL,  # Redis as result backend
    include=["schedulex.celery_tasks"]
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
)

if __name__ == "__main__":
    celery_app.start()
