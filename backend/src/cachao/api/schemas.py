"""Pydantic schemas for public (unauthenticated) responses."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any
from typing import List
from typing import Optional

from pydantic import BaseModel
from pydantic import ConfigDict

from cachao.db.models import StaffRole


class ArtistProfileSchema(BaseModel):
    """Public view of an artist; contact details are left out."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    event_id: int
    name: str
    role: StaffRole
    image_url: Optional[str] = None
    bio: Optional[str] = None
    instagram_url: Optional[str] = None
    tiktok_url: Optional[str] = None
    youtube_url: Optional[str] = None
    website_url: Optional[str] = None
    country: Optional[str] = None
    city: Optional[str] = None
    partner_name: Optional[str] = None
    partner_id: Optional[int] = None
    styles: Optional[List[Any]] = None


class PublicUserSchema(BaseModel):
    """Public user profile."""

    model_config = ConfigDict(from_attributes=True)

    nickname: str
    name: Optional[str] = None
    photo_url: Optional[str] = None
    cover_photo_url: Optional[str] = None
    bio: Optional[str] = None
    location: Optional[str] = None
    dance_styles: Optional[List[Any]] = None


class PublicVideoSchema(BaseModel):
    """Video listed on a public profile."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    title: Optional[str] = None
    video_url: str
    thumbnail_url: Optional[str] = None
    category: Optional[str] = None
    event_id: Optional[int] = None
    event_name: Optional[str] = None
    created_at: Optional[datetime] = None


class AppliedDiscountSchema(BaseModel):
    """Discount that set the quoted price."""

    type: str
    value: Decimal


class PriceQuoteSchema(BaseModel):
    """Ticket price quote."""

    model_config = ConfigDict(from_attributes=True)

    ticket_id: int
    quantity: int
    base_price: Decimal
    unit_price: Decimal
    discount_amount: Decimal
    total_amount: Decimal
    discount_code_id: Optional[int] = None
    applied_discount: Optional[AppliedDiscountSchema] = None
