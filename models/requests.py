"""Request payloads accepted by the services.

Patch models (``*Update``) treat a field left as ``None`` as "keep the
current value".
"""

import datetime
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator
from models.user import UserRole


class UserCreate(BaseModel):
    """Registration payload."""

    username: str = Field(min_length=1)
    display_name: str = Field(min_length=1)
    password: str = Field(min_length=1)


class UserUpdate(BaseModel):
    """Partial update of a user."""

    username: Optional[str] = Field(default=None, min_length=1)
    display_name: Optional[str] = Field(default=None, min_length=1)
    password: Optional[str] = Field(default=None, min_length=1)
    role: Optional[UserRole] = None


class LoginRequest(BaseModel):
    username: str
    password: str


class CategoryCreate(BaseModel):
    label: str = Field(min_length=1)


class CategoryUpdate(BaseModel):
    label: Optional[str] = Field(default=None, min_length=1)


class DefaultCategoriesUpdate(BaseModel):
    """New template for the categories every new user starts with."""

    categories: List[str]

    @field_validator("categories")
    @classmethod
    def strip_labels(cls, value: List[str]) -> List[str]:
        return [label.strip() for label in value]


class TransactionCreate(BaseModel):
    """New transaction, filed under the caller's category with this label."""

    label: str = Field(min_length=1)
    date: datetime.date
    amount: float = Field(allow_inf_nan=False)
    category_label: str = Field(min_length=1)


class TransactionUpdate(BaseModel):
    label: Optional[str] = Field(default=None, min_length=1)
    date: Optional[datetime.date] = None
    amount: Optional[float] = Field(default=None, allow_inf_nan=False)
    category_label: Optional[str] = Field(default=None, min_length=1)
