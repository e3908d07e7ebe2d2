"""Сервисный слой приложения (бизнес-логика без HTTP)."""
