"""
Gunicorn Configuration

Uvicorn workers under Gunicorn. Each worker holds its own live mirrors and
notification feeds, so the default is a single worker.
"""

import os

# Server socket
bind = os.getenv("BIND", "0.0.0.0:8000")

# Worker processes
workers = int(os.getenv("WORKERS", 1))
worker_class = "uvicorn.workers.UvicornWorker"
timeout = 120
keepalive = 5
graceful_timeout = 30

proc_name = "orderdesk-api"

# Logging
errorlog = "-"
accesslog = "-"
loglevel = os.getenv("LOG_LEVEL", "info").lower()
