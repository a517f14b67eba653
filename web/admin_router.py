"""
Admin API router: promotion tiers and runtime settings.

Reads are public (the storefront fetches the tier table to compute rewards
locally), writes require the X-Admin-Token header when ADMIN_API_TOKEN is set.
"""

import logging

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from db import session_commit
from models.promotion_tier import PromotionTierDTO, PromotionTierUpdateDTO
from models.system_settings import SettingDTO, SettingUpdateRequest
from repositories.system_settings import SystemSettingsRepository
from services.promotion_admin import PromotionAdminService
from web.dependencies import db_session, require_admin

logger = logging.getLogger(__name__)

admin_router = APIRouter(prefix="/api/admin", tags=["admin"])


@admin_router.get(
    "/promotions/tiers",
    response_model=list[PromotionTierDTO],
    response_model_by_alias=True
)
async def get_promotion_tiers(session: AsyncSession = Depends(db_session)):
    """All tiers, enabled and disabled, ordered by tierRank."""
    return await PromotionAdminService.get_tiers(session)


@admin_router.post(
    "/promotions/tiers",
    response_model=PromotionTierDTO,
    response_model_by_alias=True,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)]
)
async def create_promotion_tier(payload: PromotionTierDTO, session: AsyncSession = Depends(db_session)):
    """
    Request Body:
        {"tierRank": 2, "minAmount": 35000, "rewardType": "discount", "rewardValue": 2000}
    """
    return await PromotionAdminService.create_tier(payload, session)


@admin_router.patch(
    "/promotions/tiers/{tier_id}",
    response_model=PromotionTierDTO,
    response_model_by_alias=True,
    dependencies=[Depends(require_admin)]
)
async def update_promotion_tier(
    tier_id: int,
    payload: PromotionTierUpdateDTO,
    session: AsyncSession = Depends(db_session)
):
    return await PromotionAdminService.update_tier(tier_id, payload, session)


@admin_router.delete(
    "/promotions/tiers/{tier_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_admin)]
)
async def delete_promotion_tier(tier_id: int, session: AsyncSession = Depends(db_session)):
    await PromotionAdminService.delete_tier(tier_id, session)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@admin_router.put(
    "/settings/{key}",
    response_model=SettingDTO,
    response_model_by_alias=True,
    dependencies=[Depends(require_admin)]
)
async def update_setting(key: str, payload: SettingUpdateRequest, session: AsyncSession = Depends(db_session)):
    setting = await SystemSettingsRepository.set(
        key, payload.value, session,
        value_type=payload.value_type,
        description=payload.description
    )
    await session_commit(session)
    logger.info(f"[Settings] '{key}' set to '{payload.value}'")
    return setting
