# provider_gateway/web/schemas.py
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class _CamelBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class ActivateDIDRequest(_CamelBody):
    area_code: str = Field(alias="areaCode", min_length=1)
    did_group_name: str = Field(alias="didGroupName", min_length=1)
    webhook_url: str = Field(default="", alias="webhookUrl")
    mobile_number: str = Field(alias="mobileNumber", min_length=1)


class DeactivateDIDRequest(_CamelBody):
    did_number: str = Field(alias="didNumber", min_length=1)
