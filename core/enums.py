from enum import Enum


class Environment(str, Enum):
    """Deployment environment names"""
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"

    @classmethod
    def values(cls) -> list[str]:
        """Get all known values"""
        return [env.value for env in cls]
