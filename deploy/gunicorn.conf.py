"""Конфигурация gunicorn для админки QR-кампаний.

Запуск:
    gunicorn -c deploy/gunicorn.conf.py wsgi:app
"""

import multiprocessing
import os

bind = os.environ.get("GUNICORN_BIND", "0.0.0.0:8000")

# Лимит запросов к /api хранится в памяти процесса, если не задан REDIS_URL:
# при нескольких воркерах счётчики у каждого свои.
workers = int(os.environ.get("GUNICORN_WORKERS", multiprocessing.cpu_count() * 2 + 1))

worker_class = "gthread"
threads = int(os.environ.get("GUNICORN_THREADS", 4))

timeout = 30

# Логи gunicorn в stdout/stderr (подходит для docker/journalctl)
accesslog = "-"
errorlog = "-"
loglevel = os.environ.get("LOG_LEVEL", "info").lower()
