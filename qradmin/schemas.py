"""Pydantic v2 contracts for strict API input validation.

Clients send camelCase keys (``isAdmin``, ``startDate``); models expose
snake_case attributes via aliases.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class StrictSchema(BaseModel):
    """Base strict schema: forbids unknown fields and strips strings."""

    model_config = ConfigDict(extra='forbid', str_strip_whitespace=True, populate_by_name=True)


def _naive_utc(value: datetime | None) -> datetime | None:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class LoginSchema(StrictSchema):
    """Contract for session login."""

    username: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=256)


class RegisterSchema(StrictSchema):
    """Contract for self-registration."""

    username: str = Field(min_length=3, max_length=255)
    password: str = Field(min_length=6, max_length=256)


class CreateUserByAdminSchema(StrictSchema):
    """Contract for creating a user from the admin panel."""

    username: str = Field(min_length=3, max_length=255)
    password: str = Field(min_length=6, max_length=256)
    is_admin: bool = Field(default=False, alias='isAdmin')
    is_active: bool = Field(default=True, alias='isActive')


class UpdateUserStatusSchema(StrictSchema):
    """Contract for activating / deactivating a user."""

    is_active: bool = Field(alias='isActive')


class ChangePasswordSchema(StrictSchema):
    """Contract for changing the current user's password."""

    current_password: str = Field(min_length=1, max_length=256, alias='currentPassword')
    new_password: str = Field(min_length=6, max_length=256, alias='newPassword')

    @model_validator(mode='after')
    def _passwords_differ(self) -> 'ChangePasswordSchema':
        if self.current_password == self.new_password:
            raise ValueError('New password must be different from current password')
        return self


class CampaignCreateSchema(StrictSchema):
    """Contract for campaign creation requests."""

    name: str = Field(min_length=1, max_length=255)
    category: str = Field(min_length=1, max_length=128)
    description: str | None = Field(default=None, max_length=5000)
    start_date: datetime = Field(alias='startDate')
    end_date: datetime = Field(alias='endDate')
    scan_limit: int | None = Field(default=None, ge=1, alias='scanLimit')
    image_url: str | None = Field(default=None, max_length=1024, alias='imageUrl')
    icon_path: str | None = Field(default=None, max_length=512, alias='iconPath')
    border_style: Literal['thick', 'none'] = Field(default='none', alias='borderStyle')
    target_url: str | None = Field(default=None, max_length=2048, alias='targetUrl')

    @field_validator('start_date', 'end_date')
    @classmethod
    def _to_utc(cls, value: datetime) -> datetime:
        return _naive_utc(value)

    @model_validator(mode='after')
    def _dates_ordered(self) -> 'CampaignCreateSchema':
        if self.end_date < self.start_date:
            raise ValueError('End date must not be before start date')
        return self


class CampaignUpdateSchema(StrictSchema):
    """Contract for partial campaign updates (only provided fields change)."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    category: str | None = Field(default=None, min_length=1, max_length=128)
    description: str | None = Field(default=None, max_length=5000)
    start_date: datetime | None = Field(default=None, alias='startDate')
    end_date: datetime | None = Field(default=None, alias='endDate')
    scan_limit: int | None = Field(default=None, ge=1, alias='scanLimit')
    image_url: str | None = Field(default=None, max_length=1024, alias='imageUrl')
    icon_path: str | None = Field(default=None, max_length=512, alias='iconPath')
    border_style: Literal['thick', 'none'] | None = Field(default=None, alias='borderStyle')
    target_url: str | None = Field(default=None, max_length=2048, alias='targetUrl')

    @field_validator('name', 'category', 'start_date', 'end_date', 'border_style')
    @classmethod
    def _not_null(cls, value):
        # Поле можно не передавать, но NULL в NOT NULL колонку не пишем
        if value is None:
            raise ValueError('Field cannot be null')
        return value

    @field_validator('start_date', 'end_date')
    @classmethod
    def _to_utc(cls, value: datetime | None) -> datetime | None:
        return _naive_utc(value)

    @model_validator(mode='after')
    def _dates_ordered(self) -> 'CampaignUpdateSchema':
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError('End date must not be before start date')
        return self


class NotificationCreateSchema(StrictSchema):
    """Contract for creating a notification addressed to the current user."""

    type: Literal['expiring_campaign', 'scan_limit_reached'] = 'expiring_campaign'
    title: str = Field(min_length=1, max_length=255)
    message: str = Field(min_length=1, max_length=5000)
    campaign_id: str | None = Field(default=None, max_length=36, alias='campaignId')
    campaign_name: str | None = Field(default=None, max_length=255, alias='campaignName')
    is_read: bool = Field(default=False, alias='isRead')
