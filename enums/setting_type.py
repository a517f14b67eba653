from enum import Enum


class SettingType(str, Enum):
    NUMBER = "number"
    STRING = "string"
    BOOLEAN = "boolean"
