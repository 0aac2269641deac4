# backend/celeryconfig.py

import os
from kombu import Queue, Exchange

# redis runs in its own container in docker-compose;
# locally use "redis://localhost:6379/0"

BROKER_URL = os.getenv("CELERY_BROKER_URL", os.getenv("REDIS_URL", "redis://localhost:6379/0"))
RESULT_BACKEND = os.getenv("CELERY_RESULT_BACKEND", BROKER_URL)

broker_url = BROKER_URL
result_backend = RESULT_BACKEND

task_serializer = "json"
result_serializer = "json"
accept_content = ["json"]
timezone = "UTC"
enable_utc = True

# Progress snapshots are polled by the API; keep finished batches for a week
result_expires = 7 * 24 * 3600
# A batch is a long sequential run; one at a time per worker process
worker_prefetch_multiplier = 1

# -------- Queues & Routing --------
default_exchange = Exchange("default", type="direct")
llm_exchange = Exchange("llm", type="direct")
batch_exchange = Exchange("batch", type="direct")

task_queues = (
    Queue("celery", exchange=default_exchange, routing_key="celery"),  # default
    Queue("default", exchange=default_exchange, routing_key="default"),
    Queue("llm", exchange=llm_exchange, routing_key="llm"),
    Queue("batch", exchange=batch_exchange, routing_key="batch"),
)

task_default_queue = "default"
task_default_exchange = "default"
task_default_routing_key = "default"

task_routes = {
    "run_batch_job": {"queue": "batch", "routing_key": "batch"},
    "warmup_llm": {"queue": "llm", "routing_key": "llm"},
}
