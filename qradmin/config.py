"""
Модуль конфигурации приложения.

Здесь определяются классы конфигурации Flask с различными
параметрами для разработки, тестов и продакшена. Все значения
можно переопределить через переменные окружения.
"""

import os
import secrets
import warnings
from datetime import timedelta


def _safe_secret_key() -> str:
    """Получить SECRET_KEY из env или сгенерировать случайный.

    В продакшене ВСЕГДА задавайте SECRET_KEY через переменную окружения,
    иначе при перезапуске сервера все сессии инвалидируются.
    """
    key = (os.environ.get("SECRET_KEY") or os.environ.get("SESSION_SECRET") or "").strip()
    if not key:
        key = secrets.token_hex(32)
        if os.environ.get("FLASK_ENV") != "development":
            warnings.warn(
                "SECRET_KEY не задан! Используется случайный ключ. "
                "Установите SECRET_KEY в переменных окружения для production.",
                RuntimeWarning,
                stacklevel=2,
            )
    return key


def _env_flag(name: str, default: str = "0") -> bool:
    return (os.environ.get(name, default) or default).strip().lower() in {"1", "true", "yes", "y"}


class Config:
    """Базовый класс конфигурации."""

    BASE_DIR = os.path.abspath(os.path.dirname(os.path.dirname(__file__)))

    # Основная база данных (кампании, пользователи, сканы, уведомления).
    # DATABASE_URL поддерживается для совместимости с хостингами.
    SQLALCHEMY_DATABASE_URI = (
        os.environ.get("DATABASE_URI")
        or os.environ.get("DATABASE_URL")
        or f"sqlite:///{os.path.join(BASE_DIR, 'qradmin.db')}"
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SECRET_KEY = _safe_secret_key()

    # --- Cookie-сессии ---
    SESSION_COOKIE_NAME = os.environ.get("SESSION_COOKIE_NAME", "qradmin_session")
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = os.environ.get("SESSION_COOKIE_SAMESITE", "Lax")
    SESSION_COOKIE_SECURE = os.environ.get("SESSION_COOKIE_SECURE", "0") == "1"
    PERMANENT_SESSION_LIFETIME = timedelta(hours=int(os.environ.get("SESSION_LIFETIME_HOURS", 24)))

    # Загрузка иконок для QR-кодов
    UPLOAD_FOLDER = os.environ.get("UPLOAD_FOLDER") or os.path.join(BASE_DIR, "uploads")
    MAX_ICON_BYTES = int(os.environ.get("MAX_ICON_BYTES", 2 * 1024 * 1024))
    ALLOWED_ICON_EXTENSIONS = {"png", "jpg", "jpeg", "gif", "svg", "webp"}

    # Логирование. По умолчанию уровень INFO и вывод только в консоль.
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
    LOG_FILE = os.environ.get("LOG_FILE")

    # --- Redis / Celery ---
    REDIS_URL = os.environ.get("REDIS_URL", "").strip()
    CELERY_BROKER_URL = os.environ.get("CELERY_BROKER_URL", REDIS_URL or "redis://localhost:6379/0")
    CELERY_RESULT_BACKEND = os.environ.get("CELERY_RESULT_BACKEND", REDIS_URL or "redis://localhost:6379/0")
    CELERY_TASK_ALWAYS_EAGER = False
    EXPIRE_CAMPAIGNS_EVERY_SEC = int(os.environ.get("EXPIRE_CAMPAIGNS_EVERY_SEC", 900))
    NOTIFICATIONS_EVERY_SEC = int(os.environ.get("NOTIFICATIONS_EVERY_SEC", 3600))

    # --- Rate limits ---
    # Общий лимит на /api/* (по IP), окно 15 минут.
    RATE_LIMIT_API_REQUESTS = int(os.environ.get("RATE_LIMIT_API_REQUESTS", 100))
    RATE_LIMIT_API_WINDOW_SEC = int(os.environ.get("RATE_LIMIT_API_WINDOW_SEC", 15 * 60))
    RATE_LIMIT_LOGIN_PER_MINUTE = int(os.environ.get("RATE_LIMIT_LOGIN_PER_MINUTE", 10))

    # --- Аналитика / уведомления ---
    # Часовой пояс, в котором строится почасовая разбивка сканов.
    ANALYTICS_TIMEZONE = os.environ.get("ANALYTICS_TIMEZONE", "Asia/Kolkata")
    # За сколько дней до окончания кампания считается «истекающей».
    NOTIFY_EXPIRING_DAYS = int(os.environ.get("NOTIFY_EXPIRING_DAYS", 3))

    # Публичный base URL для ссылок в QR-кодах (если пусто, берётся из запроса)
    PUBLIC_BASE_URL = os.environ.get("PUBLIC_BASE_URL", "").strip().rstrip("/")

    # Засеять демо-данные при старте приложения (только для dev/demo)
    SEED_ON_STARTUP = _env_flag("SEED_ON_STARTUP")
    SEED_ADMIN_PASSWORD = os.environ.get("SEED_ADMIN_PASSWORD", "admin123")
    SEED_USER1_PASSWORD = os.environ.get("SEED_USER1_PASSWORD", "password1")
    SEED_DEMO_PASSWORD = os.environ.get("SEED_DEMO_PASSWORD", "demo123")


class DevelopmentConfig(Config):
    """Настройки для режима разработки."""

    DEBUG = True
    SEED_ON_STARTUP = _env_flag("SEED_ON_STARTUP", "1")
    SEND_FILE_MAX_AGE_DEFAULT = 0


class TestingConfig(Config):
    """Настройки для тестов."""

    TESTING = True
    DEBUG = True
    SEED_ON_STARTUP = False
    CELERY_TASK_ALWAYS_EAGER = True
    CELERY_BROKER_URL = "memory://"
    CELERY_RESULT_BACKEND = "cache+memory://"
    # В тестах лимит не должен мешать длинным сценариям
    RATE_LIMIT_API_REQUESTS = 10_000
    RATE_LIMIT_LOGIN_PER_MINUTE = 10_000
    SEND_FILE_MAX_AGE_DEFAULT = 0


class ProductionConfig(Config):
    """Настройки для режима продакшена."""

    DEBUG = False
    SESSION_COOKIE_SECURE = os.environ.get("SESSION_COOKIE_SECURE", "1") == "1"
    SEND_FILE_MAX_AGE_DEFAULT = timedelta(days=30)
