# Точка входа ДЛЯ РАЗРАБОТКИ (debug server)
# В продакшене использовать wsgi.py + gunicorn.

"""Запуск сервера разработки админки QR-кампаний.

Конфигурация выбирается по переменной окружения:

- ``APP_ENV=production`` или ``FLASK_ENV=production`` → ProductionConfig
- во всех остальных случаях используется DevelopmentConfig
  (с SEED_ON_STARTUP=1 по умолчанию: демо-пользователи и кампании).
"""

import os

from env_loader import load_dotenv_like

# .env подхватывается до импорта конфигурации: классы Config читают os.environ
load_dotenv_like()

from qradmin import create_app  # noqa: E402
from qradmin.config import DevelopmentConfig, ProductionConfig  # noqa: E402


def _select_config_class() -> type:
    """Выбрать класс конфигурации в зависимости от окружения.

    Приоритет имеет переменная ``APP_ENV``, затем ``FLASK_ENV``.
    Любое значение, начинающееся с ``prod``, даёт :class:`ProductionConfig`.
    """
    env = (os.getenv('APP_ENV') or os.getenv('FLASK_ENV') or 'development').lower()
    if env.startswith('prod'):
        return ProductionConfig
    return DevelopmentConfig


def main() -> None:
    app = create_app(_select_config_class())
    port = int(os.environ.get('PORT', 5000))
    app.run(host='0.0.0.0', port=port, debug=app.config.get('DEBUG', True))


if __name__ == '__main__':
    main()
