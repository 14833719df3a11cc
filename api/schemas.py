from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator


class LoginRequest(BaseModel):
    # Optional so that missing fields produce the 400 body rather than a 422.
    username: Optional[str] = None
    password: Optional[str] = None

    @field_validator("username", "password", mode="before")
    @classmethod
    def _coerce_scalar(cls, value: Any) -> Optional[str]:
        # numbers are stringified; objects and lists count as missing
        if value is None or isinstance(value, str):
            return value
        if isinstance(value, bool):
            return str(value).lower()
        if isinstance(value, (int, float)):
            return str(value)
        return None


class UsernameRequest(BaseModel):
    username: Optional[str] = None


class UserModel(BaseModel):
    id: int
    username: str
    role: str
    member_id: Optional[int] = None


class LoginResponse(BaseModel):
    success: bool
    message: str
    user: Optional[UserModel] = None


class MessageResponse(BaseModel):
    success: bool
    message: str


class CheckAuthResponse(BaseModel):
    authenticated: bool
    username: Optional[str] = None


class ActivityLogModel(BaseModel):
    id: int
    username: str
    activity: str
    activity_date: str


class DashboardFiltersModel(BaseModel):
    filters: Dict[str, Any] = Field(default_factory=dict)
    selected_field: Optional[str] = None
    page: int = 0
    page_size: int = 5


class DatasetInfoModel(BaseModel):
    key: str
    name: str
    numeric_fields: List[str]
    filter_fields: List[str]
