from enum import Enum


class RuntimeEnvironment(Enum):
    DEV = "DEV"      # Local development, verbose logging
    PROD = "PROD"    # Production deployment
    TEST = "TEST"    # pytest runs, no side effects at startup
