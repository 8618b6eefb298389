"""
Pydantic schemas for the caucus site API.

Documents are exposed with camelCase keys and an ``_id`` field, matching what
the site's admin panel and public pages consume.
"""

from __future__ import annotations

import datetime as dt
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )


class ErrorResponse(BaseModel):
    success: Literal[False] = False
    error: str


class SuccessResponse(BaseModel):
    success: bool = True


# Auth


class LoginRequest(BaseModel):
    password: Optional[str] = None


class VerifyResponse(BaseModel):
    success: bool
    authenticated: bool
    role: Optional[str] = None


# Events


class EventFields(ApiModel):
    date: dt.date
    time: str = Field(..., min_length=1, max_length=64)
    presenter: Optional[str] = None
    presenter_url: Optional[str] = None
    topic: str = Field(..., min_length=1)
    location: str = Field(..., min_length=1)
    location_url: Optional[str] = None
    is_visible: bool = True
    content: Optional[str] = None


class EventCreate(EventFields):
    pass


class EventUpdate(ApiModel):
    date: Optional[dt.date] = None
    time: Optional[str] = Field(default=None, min_length=1, max_length=64)
    presenter: Optional[str] = None
    presenter_url: Optional[str] = None
    topic: Optional[str] = Field(default=None, min_length=1)
    location: Optional[str] = Field(default=None, min_length=1)
    location_url: Optional[str] = None
    is_visible: Optional[bool] = None
    content: Optional[str] = None


class EventOut(EventFields):
    id: str = Field(..., alias="_id")
    created_at: dt.datetime
    updated_at: dt.datetime


class EventListResponse(BaseModel):
    success: bool = True
    data: list[EventOut]
    total: int


class EventResponse(BaseModel):
    success: bool = True
    data: EventOut


# Resources


class ResourceCreate(ApiModel):
    title: str = Field(..., min_length=1)
    url: str = Field(..., min_length=1)
    description: Optional[str] = None
    thumbnail: Optional[str] = None
    featured: bool = False
    order: int = 0
    is_visible: bool = True


class ResourceUpdate(ApiModel):
    title: Optional[str] = Field(default=None, min_length=1)
    url: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    thumbnail: Optional[str] = None
    featured: Optional[bool] = None
    order: Optional[int] = None
    is_visible: Optional[bool] = None


class ResourceOut(ResourceCreate):
    id: str = Field(..., alias="_id")
    created_at: dt.datetime
    updated_at: dt.datetime


class ResourceListResponse(BaseModel):
    success: bool = True
    data: list[ResourceOut]
    total: int


class ResourceResponse(BaseModel):
    success: bool = True
    data: ResourceOut


# Tech list


class TechItemCreate(ApiModel):
    name: str = Field(..., min_length=1)
    url: str = Field(..., min_length=1)
    order: int = 0
    is_visible: bool = True


class TechItemUpdate(ApiModel):
    name: Optional[str] = Field(default=None, min_length=1)
    url: Optional[str] = Field(default=None, min_length=1)
    order: Optional[int] = None
    is_visible: Optional[bool] = None


class TechItemOut(TechItemCreate):
    id: str = Field(..., alias="_id")
    created_at: dt.datetime
    updated_at: dt.datetime


class TechItemListResponse(BaseModel):
    success: bool = True
    data: list[TechItemOut]


class TechItemResponse(BaseModel):
    success: bool = True
    data: TechItemOut


# Contact


class ContactRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    message: Optional[str] = None


class ContactCreated(BaseModel):
    id: str


class ContactCreatedResponse(BaseModel):
    success: bool = True
    data: ContactCreated


class ContactReadUpdate(BaseModel):
    read: Any = None


class ContactOut(ApiModel):
    id: str = Field(..., alias="_id")
    name: str
    email: str
    message: str
    read: bool
    created_at: dt.datetime
    updated_at: dt.datetime


class ContactListResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    data: list[ContactOut]
    total: int
    unread_count: int = Field(..., alias="unreadCount")


class ContactResponse(BaseModel):
    success: bool = True
    data: ContactOut


class MessageResponse(BaseModel):
    success: bool = True
    message: str
