"""WSGI-энтрипоинт для прод-окружения.

Используется такими серверами, как gunicorn или uWSGI:
    gunicorn -c deploy/gunicorn.conf.py wsgi:app
"""

import os

from env_loader import load_dotenv_like

load_dotenv_like()

from qradmin import create_app  # noqa: E402
from qradmin.config import DevelopmentConfig, ProductionConfig, TestingConfig  # noqa: E402

_CONFIGS = {
    "prod": ProductionConfig,
    "production": ProductionConfig,
    "dev": DevelopmentConfig,
    "development": DevelopmentConfig,
    "test": TestingConfig,
    "testing": TestingConfig,
}


def get_config_class():
    """Класс конфигурации по ``APP_CONFIG`` (по умолчанию production)."""
    return _CONFIGS.get(os.environ.get("APP_CONFIG", "production").strip().lower(), ProductionConfig)


app = create_app(get_config_class())


if __name__ == "__main__":
    app.run(host="0.0.0.0", port=int(os.environ.get("PORT", 8000)))
