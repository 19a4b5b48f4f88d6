"""Application configuration."""
from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Application settings."""
    
    # Policies
    POLICY_DIR: Optional[str] = None
    DEFAULT_POLICY_PRODUCT_GROUPS: str = "product_groups_v1"
    DEFAULT_POLICY_CUSTOMERS: str = "customers_v1"
    
    # Application
    LOG_LEVEL: str = "INFO"
    DEBUG: bool = False
    
    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
