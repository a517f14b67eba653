import logging
import math

from sqlalchemy import select, update, delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

import config
from db import session_execute, session_flush
from enums.setting_type import SettingType
from models.system_settings import SystemSettings, SettingDTO

DELIVERY_FEE_KEY = "delivery_fee"

DEFAULT_SETTINGS = [
    SettingDTO(
        key=DELIVERY_FEE_KEY,
        value=str(config.DEFAULT_DELIVERY_FEE),
        value_type=SettingType.NUMBER,
        description="Base delivery fee (IQD), waived by free-delivery promotion tiers"
    ),
]


class SystemSettingsRepository:
    """
    Repository for storefront-wide runtime configuration.

    Provides CRUD operations for the key-value SystemSettings store.
    Used for configuration that can change without restart.
    """

    @staticmethod
    async def get(key: str, session: AsyncSession | Session) -> SettingDTO | None:
        """
        Get a setting by key.

        Args:
            key: Setting key (e.g., "delivery_fee")
            session: Database session (async or sync)

        Returns:
            SettingDTO, or None if not found
        """
        stmt = select(SystemSettings).where(SystemSettings.key == key)
        result = await session_execute(stmt, session)
        setting = result.scalar()
        return SettingDTO.model_validate(setting, from_attributes=True) if setting else None

    @staticmethod
    async def set(
        key: str,
        value: str,
        session: AsyncSession | Session,
        value_type: SettingType | None = None,
        description: str | None = None
    ) -> SettingDTO:
        """
        Set a setting value (insert or update).

        value_type and description are only changed when given.
        """
        existing = await SystemSettingsRepository.get(key, session)

        if existing is not None:
            values = {"value": value}
            if value_type is not None:
                values["value_type"] = value_type.value
            if description is not None:
                values["description"] = description
            stmt = update(SystemSettings).where(SystemSettings.key == key).values(**values)
            await session_execute(stmt, session)
        else:
            setting = SystemSettings(
                key=key,
                value=value,
                value_type=(value_type or SettingType.STRING).value,
                description=description
            )
            session.add(setting)
            await session_flush(session)

        return await SystemSettingsRepository.get(key, session)

    @staticmethod
    async def delete(key: str, session: AsyncSession | Session) -> None:
        stmt = delete(SystemSettings).where(SystemSettings.key == key)
        await session_execute(stmt, session)

    @staticmethod
    async def get_all(session: AsyncSession | Session) -> list[SettingDTO]:
        stmt = select(SystemSettings).order_by(SystemSettings.key)
        result = await session_execute(stmt, session)
        return [SettingDTO.model_validate(s, from_attributes=True) for s in result.scalars().all()]

    @staticmethod
    async def get_typed_map(session: AsyncSession | Session) -> dict[str, object]:
        """
        Get all settings as {key: value} with values converted to their declared type.

        This is the shape GET /api/settings returns. Values that do not
        parse as their declared type are returned as raw strings.
        """
        return {s.key: convert_setting_value(s) for s in await SystemSettingsRepository.get_all(session)}

    @staticmethod
    async def get_delivery_fee(session: AsyncSession | Session) -> int:
        """
        Get the base delivery fee.

        Returns:
            Fee from the "delivery_fee" setting, or config.DEFAULT_DELIVERY_FEE
            if the setting is missing, unparseable or negative
        """
        setting = await SystemSettingsRepository.get(DELIVERY_FEE_KEY, session)
        if setting is None:
            return config.DEFAULT_DELIVERY_FEE

        fee = convert_setting_value(setting.model_copy(update={"value_type": SettingType.NUMBER}))
        if not isinstance(fee, (int, float)) or fee < 0:
            logging.warning(f"[Settings] Invalid delivery_fee '{setting.value}', using default {config.DEFAULT_DELIVERY_FEE}")
            return config.DEFAULT_DELIVERY_FEE
        return int(fee)

    @staticmethod
    async def seed_defaults(session: AsyncSession | Session) -> int:
        """
        Insert default settings that are not present yet.

        Returns:
            Number of settings inserted
        """
        inserted = 0
        for default in DEFAULT_SETTINGS:
            if await SystemSettingsRepository.get(default.key, session) is None:
                await SystemSettingsRepository.set(
                    default.key, default.value, session,
                    value_type=default.value_type,
                    description=default.description
                )
                inserted += 1
        return inserted


def convert_setting_value(setting: SettingDTO) -> object:
    if setting.value_type == SettingType.NUMBER:
        try:
            number = float(setting.value)
        except ValueError:
            return setting.value
        if not math.isfinite(number):
            return setting.value
        return int(number) if number.is_integer() else number
    if setting.value_type == SettingType.BOOLEAN:
        return setting.value.strip().lower() in ("true", "1", "yes")
    return setting.value
