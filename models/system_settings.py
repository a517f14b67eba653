from sqlalchemy import Column, String, DateTime, func

from enums.setting_type import SettingType
from models.base import Base, CamelModel


class SystemSettings(Base):
    """
    Key-value store for runtime-configurable storefront settings.
    Allows changing settings without restart.

    Examples:
        - delivery_fee: "3500" (number)
        - store_open: "true" (boolean)
        - support_phone: "+964..." (string)
    """
    __tablename__ = 'system_settings'

    key = Column(String, primary_key=True)
    value = Column(String, nullable=False)
    value_type = Column(String(10), nullable=False, default=SettingType.STRING.value)
    description = Column(String, nullable=True)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())


class SettingDTO(CamelModel):
    key: str
    value: str
    value_type: SettingType = SettingType.STRING
    description: str | None = None


class SettingUpdateRequest(CamelModel):
    value: str
    value_type: SettingType | None = None
    description: str | None = None
