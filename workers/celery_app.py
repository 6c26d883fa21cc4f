import os
from celery import Celery
from dotenv import load_dotenv

load_dotenv()

broker = os.getenv("REDIS_URL", "redis://localhost:6379/0")
backend = broker

celery = Celery("mirror_workers", broker=broker, backend=backend, include=["workers.tasks"])
celery.conf.task_routes = {
    "tasks.run_tryon_batch": {"queue": "tryon"},
}
# A batch can run for minutes; hand it to one worker at a time.
celery.conf.worker_prefetch_multiplier = 1
