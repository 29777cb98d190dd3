from pydantic import BaseModel, field_validator
from typing import Optional
from datetime import datetime
from servicefinder.services.directory import contact_url, service_icon

PLACEHOLDER_PHOTO = (
    "https://images.unsplash.com/photo-1587778082149-bd5b1bf5d3fa"
    "?w=800&auto=format&fit=crop&q=60"
)


class ServiceProvider(BaseModel):
    id: str
    full_name: str
    profession: str
    experience_years: int
    specialization: Optional[str] = None
    availability: Optional[str] = None
    age: int
    phone: str
    location: str
    photo_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v):
        # Backends hand out either UUID strings or serial integers
        return str(v) if v is not None else v

    class Config:
        from_attributes = True
        frozen = True


class ProviderProfile(ServiceProvider):
    """A provider ready for display: photo fallback, icon and contact link resolved."""
    photo: str
    icon: str
    contact_url: str

    @classmethod
    def from_provider(cls, provider: ServiceProvider) -> "ProviderProfile":
        return cls(
            **provider.model_dump(),
            photo=provider.photo_url or PLACEHOLDER_PHOTO,
            icon=service_icon(provider.profession),
            contact_url=contact_url(provider.phone),
        )
