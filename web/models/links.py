"""Link and campaign models for UTM Connect web application."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, HttpUrl


class LinkCreateRequest(BaseModel):
    """Short link creation request."""

    model_config = ConfigDict(populate_by_name=True)

    original_url: HttpUrl = Field(..., alias="originalUrl")
    short_code: str = Field(
        ..., min_length=1, max_length=64, pattern=r"^[A-Za-z0-9_-]+$", alias="shortCode"
    )
    campaign_id: Optional[str] = Field(default=None, alias="campaignId")


class CampaignCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
