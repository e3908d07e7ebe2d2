"""
Инициализация расширений Flask.

В этом модуле размещаются объекты, которые будут использованы
приложением: SQLAlchemy и Celery. Отделение расширений в
отдельный файл помогает избежать циклических импортов и
облегчает тестирование.
"""

from __future__ import annotations

from celery import Celery
from flask import Flask, has_app_context
from flask_sqlalchemy import SQLAlchemy

# Объект SQLAlchemy без привязки к приложению.
# Приложение привязывается в create_app() (см. qradmin/__init__.py).
db = SQLAlchemy()

# Celery-приложение инициализируется через init_celery(app).
celery_app = Celery(__name__)


def init_celery(app: Flask) -> Celery:
    """Привязать Celery к конфигу Flask-приложения."""
    celery_app.conf.update(
        broker_url=app.config["CELERY_BROKER_URL"],
        result_backend=app.config["CELERY_RESULT_BACKEND"],
        task_ignore_result=True,
        task_always_eager=bool(app.config.get("CELERY_TASK_ALWAYS_EAGER", False)),
        broker_connection_retry_on_startup=True,
        beat_schedule={
            "expire-finished-campaigns": {
                "task": "qradmin.tasks.expire_finished_campaigns",
                "schedule": float(app.config.get("EXPIRE_CAMPAIGNS_EVERY_SEC", 900)),
            },
            "generate-admin-notifications": {
                "task": "qradmin.tasks.generate_admin_notifications",
                "schedule": float(app.config.get("NOTIFICATIONS_EVERY_SEC", 3600)),
            },
        },
    )

    class FlaskTask(celery_app.Task):
        abstract = True

        def __call__(self, *args, **kwargs):
            # Eager-режим (тесты, CLI) уже работает внутри контекста приложения
            if has_app_context():
                return super().__call__(*args, **kwargs)
            with app.app_context():
                return super().__call__(*args, **kwargs)

    celery_app.Task = FlaskTask
    return celery_app
