"""Celery worker entrypoint.

Запуск:
    celery -A celery_worker.celery worker --loglevel=info
    celery -A celery_worker.celery beat --loglevel=info
"""

from qradmin.extensions import celery_app
from wsgi import app as flask_app

flask_app.app_context().push()

celery = celery_app

# Регистрация задач (expire_finished_campaigns, generate_admin_notifications)
from qradmin import tasks  # noqa: E402,F401
