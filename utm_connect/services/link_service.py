"""Short links, campaigns and click tracking."""

from typing import List, Optional

from loguru import logger

from utm_connect.core.exceptions import ConflictError, NotFoundError
from utm_connect.repositories.campaign_repository import Campaign, CampaignRepository
from utm_connect.repositories.link_repository import Link, LinkRepository


class LinkService:
    """Create short links and record each resolution as a click."""

    def __init__(self, links: LinkRepository, campaigns: CampaignRepository):
        self.links = links
        self.campaigns = campaigns

    async def create_link(
        self,
        original_url: str,
        short_code: str,
        user_id: str,
        campaign_id: Optional[str] = None,
    ) -> Link:
        """
        Raises:
            ConflictError: Short code already taken
            NotFoundError: Campaign does not exist
        """
        if await self.links.get_by_short_code(short_code) is not None:
            raise ConflictError("Short code already exists")
        if campaign_id and await self.campaigns.get_by_id(campaign_id) is None:
            raise NotFoundError("Campaign not found")

        link = await self.links.create(original_url, short_code, user_id, campaign_id)
        logger.info(f"Link {short_code} created for user {user_id}")
        return link

    async def resolve(
        self,
        short_code: str,
        user_agent: Optional[str] = None,
        referer: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> Link:
        """Look up a short code and record the visit."""
        link = await self.links.get_by_short_code(short_code)
        if link is None:
            raise NotFoundError("Link not found")

        updated = await self.links.record_click(link.id, user_agent, referer, ip_address)
        # Link deleted between lookup and click: report what was resolved
        return updated or link

    async def get_user_links(self, user_id: str) -> List[Link]:
        return await self.links.get_by_user(user_id)


class CampaignService:
    def __init__(self, campaigns: CampaignRepository, links: LinkRepository):
        self.campaigns = campaigns
        self.links = links

    async def create_campaign(
        self, name: str, user_id: str, description: Optional[str] = None
    ) -> Campaign:
        return await self.campaigns.create(name, user_id, description)

    async def get_campaign(self, campaign_id: str) -> Campaign:
        campaign = await self.campaigns.get_by_id(campaign_id)
        if campaign is None:
            raise NotFoundError("Campaign not found")
        return campaign

    async def get_campaign_links(self, campaign_id: str) -> List[Link]:
        await self.get_campaign(campaign_id)
        return await self.links.get_by_campaign(campaign_id)

    async def get_user_campaigns(self, user_id: str) -> List[Campaign]:
        return await self.campaigns.get_by_user(user_id)
