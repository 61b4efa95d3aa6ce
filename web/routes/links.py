"""Short link and campaign routes for UTM Connect web application."""

from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Request, status

from utm_connect.repositories import User
from utm_connect.services import CampaignService, LinkService
from web.dependencies import get_campaign_service, get_current_user, get_link_service
from web.models import CampaignCreateRequest, LinkCreateRequest
from web.rate_limit import get_real_client_ip

router = APIRouter(prefix="/api/links", tags=["links"])
campaigns_router = APIRouter(prefix="/api/campaigns", tags=["campaigns"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_link(
    payload: LinkCreateRequest,
    current_user: User = Depends(get_current_user),
    link_service: LinkService = Depends(get_link_service),
) -> Dict[str, Any]:
    """Create a short link owned by the caller; 409 if the short code is taken."""
    link = await link_service.create_link(
        original_url=str(payload.original_url),
        short_code=payload.short_code,
        user_id=current_user.id,
        campaign_id=payload.campaign_id,
    )
    return link.to_dict()


@router.get("/{short_code}")
async def resolve_link(
    short_code: str, request: Request, link_service: LinkService = Depends(get_link_service)
) -> Dict[str, Any]:
    """Resolve a short code and record the click."""
    link = await link_service.resolve(
        short_code,
        user_agent=request.headers.get("User-Agent"),
        referer=request.headers.get("Referer"),
        ip_address=get_real_client_ip(request),
    )
    return link.to_dict()


@campaigns_router.post("", status_code=status.HTTP_201_CREATED)
async def create_campaign(
    payload: CampaignCreateRequest,
    current_user: User = Depends(get_current_user),
    campaign_service: CampaignService = Depends(get_campaign_service),
) -> Dict[str, Any]:
    campaign = await campaign_service.create_campaign(
        payload.name, current_user.id, payload.description
    )
    return campaign.to_dict()


@campaigns_router.get("/user/{user_id}")
async def get_user_campaigns(
    user_id: str, campaign_service: CampaignService = Depends(get_campaign_service)
) -> List[Dict[str, Any]]:
    campaigns = await campaign_service.get_user_campaigns(user_id)
    return [campaign.to_dict() for campaign in campaigns]


@campaigns_router.get("/{campaign_id}")
async def get_campaign(
    campaign_id: str, campaign_service: CampaignService = Depends(get_campaign_service)
) -> Dict[str, Any]:
    """Campaign with the links attached to it."""
    campaign = await campaign_service.get_campaign(campaign_id)
    links = await campaign_service.get_campaign_links(campaign_id)
    data = campaign.to_dict()
    data["links"] = [link.to_dict() for link in links]
    return data
