"""
Gunicorn settings

    gunicorn --config gunicorn_config.py wsgi:app

Each sync worker handles one request at a time with its own SQLAlchemy
session, so the per-volunteer row lock taken by the consistency guard is
the only cross-worker coordination. Use a shared RATELIMIT_STORAGE_URI
(Redis) when running more than one worker.
"""
import multiprocessing

from decouple import config

bind = config('GUNICORN_BIND', default='0.0.0.0:8000')
workers = config('GUNICORN_WORKERS', default=multiprocessing.cpu_count() * 2 + 1, cast=int)
worker_class = 'sync'
timeout = config('GUNICORN_TIMEOUT', default=60, cast=int)
graceful_timeout = config('GUNICORN_GRACEFUL_TIMEOUT', default=30, cast=int)
keepalive = config('GUNICORN_KEEPALIVE', default=5, cast=int)

# Recycle workers to bound memory growth
max_requests = config('GUNICORN_MAX_REQUESTS', default=10000, cast=int)
max_requests_jitter = config('GUNICORN_MAX_REQUESTS_JITTER', default=1000, cast=int)

accesslog = config('GUNICORN_ACCESS_LOG', default='-')
errorlog = config('GUNICORN_ERROR_LOG', default='-')
loglevel = config('GUNICORN_LOG_LEVEL', default='info')
access_log_format = '%(h)s "%(r)s" %(s)s %(b)s %(D)sus'

proc_name = 'volunteer_scheduler'

limit_request_line = 4096
limit_request_fields = 100
limit_request_field_size = 8190


def when_ready(server):
    server.log.info("Volunteer Scheduler listening on %s with %s workers", bind, workers)


def post_fork(server, worker):
    server.log.info("Worker %s spawned", worker.pid)
