from typing import Any

from pydantic import BaseModel, Field


class AppInfo(BaseModel):
    """Index page payload"""
    name: str
    version: str
    status: str = "running"
    context_items: dict[str, Any] = Field(
        default_factory=dict,
        description="Scratch values left by the pipeline steps for this request"
    )


class PrivacyInfo(BaseModel):
    """Privacy page payload"""
    title: str = "Privacy Policy"
    message: str = "Use this page to detail your site's privacy policy."
