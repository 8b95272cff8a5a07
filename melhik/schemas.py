# melhik/schemas.py
"""Request bodies for the administrative API (camelCase on the wire)."""
from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

HEX_COLOR = r"^#[0-9A-Fa-f]{6}$"


class _Body(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True, extra="ignore")


# ---------- auth ----------
class LoginRequest(_Body):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


# ---------- religions ----------
class ReligionCreate(_Body):
    name: str = Field(min_length=1, max_length=120)
    name_en: Optional[str] = Field(default=None, alias="nameEn", max_length=120)
    description: Optional[str] = None
    color: str = Field(default="#8B4513", pattern=HEX_COLOR)
    icon: Optional[str] = Field(default=None, max_length=240)


class ReligionUpdate(_Body):
    name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    name_en: Optional[str] = Field(default=None, alias="nameEn", max_length=120)
    description: Optional[str] = None
    color: Optional[str] = Field(default=None, pattern=HEX_COLOR)
    icon: Optional[str] = Field(default=None, max_length=240)


# ---------- topics ----------
class TopicCreate(_Body):
    religion_id: int = Field(alias="religionId", gt=0)
    title: str = Field(min_length=1, max_length=200)
    title_en: Optional[str] = Field(default=None, alias="titleEn", max_length=200)
    description: Optional[str] = None
    image_url: Optional[str] = Field(default=None, alias="imageUrl", max_length=1024)
    image_alt: Optional[str] = Field(default=None, alias="imageAlt", max_length=240)


class TopicUpdate(_Body):
    religion_id: Optional[int] = Field(default=None, alias="religionId", gt=0)
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    title_en: Optional[str] = Field(default=None, alias="titleEn", max_length=200)
    description: Optional[str] = None
    image_url: Optional[str] = Field(default=None, alias="imageUrl", max_length=1024)
    image_alt: Optional[str] = Field(default=None, alias="imageAlt", max_length=240)


# ---------- topic content ----------
class Reference(_Body):
    verse: str
    text: str
    explanation: str


class TopicDetailCreate(_Body):
    explanation: str = Field(min_length=1)
    bible_verses: Optional[List[str]] = Field(default=None, alias="bibleVerses")
    key_points: Optional[List[str]] = Field(default=None, alias="keyPoints")
    references: Optional[List[Reference]] = None


class TopicDetailUpdate(_Body):
    # `version` is not accepted: the store bumps it on every update
    explanation: Optional[str] = Field(default=None, min_length=1)
    bible_verses: Optional[List[str]] = Field(default=None, alias="bibleVerses")
    key_points: Optional[List[str]] = Field(default=None, alias="keyPoints")
    references: Optional[List[Reference]] = None
