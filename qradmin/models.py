"""
Модели базы данных для приложения.

Пользователи (администраторы и операторы), кампании с QR-кодами,
события сканирования (для аналитики) и уведомления администраторов.
Идентификаторы — строковые UUID, время хранится в UTC без tzinfo.
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from .extensions import db


CAMPAIGN_STATUSES = ("active", "expired")
BORDER_STYLES = ("thick", "none")
NOTIFICATION_TYPES = ("expiring_campaign", "scan_limit_reached")


def utcnow() -> datetime:
    """Текущее время в UTC (naive), в том же виде, в каком оно лежит в БД."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _new_id() -> str:
    return str(uuid.uuid4())


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


class User(db.Model):
    """Пользователь админки.

    Пароль хранится только в виде хеша (werkzeug.security).
    ``is_admin`` открывает доступ к управлению пользователями и
    уведомлениями.
    """

    __tablename__ = 'users'

    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    username = db.Column(db.String(255), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    is_admin = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    campaigns = db.relationship('Campaign', back_populates='creator', lazy='select')

    def set_password(self, password: str) -> None:
        """Устанавливает хеш пароля."""
        from werkzeug.security import generate_password_hash

        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        """Проверяет пароль."""
        from werkzeug.security import check_password_hash

        if not self.password_hash:
            return False
        return check_password_hash(self.password_hash, password)

    def to_dict(self) -> Dict[str, Any]:
        """Безопасное представление пользователя (без хеша пароля)."""
        return {
            'id': self.id,
            'username': self.username,
            'isActive': bool(self.is_active),
            'isAdmin': bool(self.is_admin),
            'createdAt': _iso(self.created_at),
        }

    def __repr__(self) -> str:
        return f"<User {self.username}>"


class Campaign(db.Model):
    """Маркетинговая кампания, привязанная к QR-коду.

    ``scan_count`` — счётчик сканов, ``scan_limit`` — необязательный
    потолок. Статус ``active``/``expired`` управляется автоматически
    (см. campaigns_service.expire_finished_campaigns).
    """

    __tablename__ = 'campaigns'
    __table_args__ = (
        db.Index('ix_campaigns_created_by', 'created_by'),
        db.Index('ix_campaigns_status_end_date', 'status', 'end_date'),
        db.Index('ix_campaigns_category', 'category'),
    )

    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    name = db.Column(db.String(255), nullable=False)
    category = db.Column(db.String(128), nullable=False)
    description = db.Column(db.Text, nullable=True)
    scan_count = db.Column(db.Integer, nullable=False, default=0)
    scan_limit = db.Column(db.Integer, nullable=True)
    status = db.Column(db.String(16), nullable=False, default='active')
    start_date = db.Column(db.DateTime, nullable=False)
    end_date = db.Column(db.DateTime, nullable=False)
    created_by = db.Column(db.String(36), db.ForeignKey('users.id'), nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)
    image_url = db.Column(db.String(1024), nullable=True)
    icon_path = db.Column(db.String(512), nullable=True)
    border_style = db.Column(db.String(16), nullable=False, default='none')
    target_url = db.Column(db.String(2048), nullable=True)

    creator = db.relationship('User', back_populates='campaigns', lazy='joined')

    @property
    def limit_reached(self) -> bool:
        return bool(self.scan_limit) and int(self.scan_count or 0) >= int(self.scan_limit)

    def to_dict(self) -> Dict[str, Any]:
        """Преобразовать запись в словарь для JSON‑выдачи."""
        return {
            'id': self.id,
            'name': self.name,
            'category': self.category,
            'description': self.description,
            'scanCount': int(self.scan_count or 0),
            'scanLimit': self.scan_limit,
            'status': self.status,
            'startDate': _iso(self.start_date),
            'endDate': _iso(self.end_date),
            'createdBy': self.created_by,
            'createdByUsername': self.creator.username if self.creator else None,
            'createdAt': _iso(self.created_at),
            'updatedAt': _iso(self.updated_at),
            'imageUrl': self.image_url,
            'iconPath': self.icon_path,
            'borderStyle': self.border_style,
            'targetUrl': self.target_url,
        }


class ScanEvent(db.Model):
    """Событие сканирования QR-кода (источник данных для аналитики)."""

    __tablename__ = 'scan_events'
    __table_args__ = (
        db.Index('ix_scan_events_campaign_scanned', 'campaign_id', 'scanned_at'),
        db.Index('ix_scan_events_region', 'region'),
    )

    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    campaign_id = db.Column(db.String(36), db.ForeignKey('campaigns.id'), nullable=False)
    region = db.Column(db.String(255), nullable=False)
    scanned_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    user_agent = db.Column(db.String(512), nullable=True)
    ip_address = db.Column(db.String(64), nullable=True)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'campaignId': self.campaign_id,
            'region': self.region,
            'scannedAt': _iso(self.scanned_at),
            'userAgent': self.user_agent,
            'ipAddress': self.ip_address,
        }


class Notification(db.Model):
    """Уведомление администратора (истекающая кампания / лимит сканов)."""

    __tablename__ = 'notifications'
    __table_args__ = (
        db.Index('ix_notifications_user_read', 'user_id', 'is_read'),
        db.Index('ix_notifications_campaign_user_type', 'campaign_id', 'user_id', 'type'),
    )

    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    type = db.Column(db.String(32), nullable=False)
    title = db.Column(db.String(255), nullable=False)
    message = db.Column(db.Text, nullable=False)
    campaign_id = db.Column(db.String(36), db.ForeignKey('campaigns.id'), nullable=True)
    campaign_name = db.Column(db.String(255), nullable=True)
    user_id = db.Column(db.String(36), db.ForeignKey('users.id'), nullable=False)
    is_read = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'type': self.type,
            'title': self.title,
            'message': self.message,
            'campaignId': self.campaign_id,
            'campaignName': self.campaign_name,
            'userId': self.user_id,
            'isRead': bool(self.is_read),
            'createdAt': _iso(self.created_at),
        }
