"""
Brand & Competitor Schemas
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from getcito.utils.domains import normalize_domain


class EntityDescriptor(BaseModel):
    """Anything whose mentions are tracked: the brand or a competitor"""
    name: str = Field(..., min_length=1, max_length=255)
    domain: Optional[str] = Field(None, max_length=255)
    aliases: List[str] = []

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name must not be blank")
        return v

    @field_validator("aliases")
    @classmethod
    def clean_aliases(cls, v: List[str]) -> List[str]:
        return [alias.strip() for alias in v if alias.strip()]

    @field_validator("domain")
    @classmethod
    def clean_domain(cls, v: Optional[str]) -> Optional[str]:
        return normalize_domain(v)


class BrandDescriptor(EntityDescriptor):
    """The tracked brand"""
    id: Optional[str] = None
    user_id: Optional[str] = None


class CompetitorDescriptor(EntityDescriptor):
    """A tracked competitor"""
    id: Optional[str] = None


class BrandCreate(BaseModel):
    """Brand creation request"""
    name: str = Field(..., min_length=1, max_length=255)
    domain: str = Field(..., min_length=1, max_length=255)
    aliases: List[str] = []
    competitors: List[EntityDescriptor] = []

    @field_validator("aliases")
    @classmethod
    def clean_aliases(cls, v: List[str]) -> List[str]:
        return [alias.strip() for alias in v if alias.strip()]

    @field_validator("domain")
    @classmethod
    def clean_domain(cls, v: str) -> str:
        domain = normalize_domain(v)
        if domain is None:
            raise ValueError("domain is not a valid host name")
        return domain


class CompetitorCreate(EntityDescriptor):
    """Competitor creation request"""
    pass


class CompetitorResponse(BaseModel):
    """Competitor response"""
    id: str
    name: str
    domain: Optional[str]
    aliases: List[str]
    created_at: datetime

    class Config:
        from_attributes = True


class BrandResponse(BaseModel):
    """Brand response"""
    id: str
    user_id: str
    name: str
    domain: str
    aliases: List[str]
    competitors: List[CompetitorResponse] = []
    created_at: datetime

    class Config:
        from_attributes = True
