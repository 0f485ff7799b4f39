# provider_gateway/voip/models.py
from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _unwrap_array(value: Any) -> Any:
    """
    SOAP arrays arrive as `{"DIDGroup": {...}}` (one item) or
    `{"DIDGroup": [{...}, ...]}` (several); flatten both to a list.
    """
    if value is None or value == "":
        return []
    if isinstance(value, dict):
        if len(value) == 1:
            inner = next(iter(value.values()))
            return inner if isinstance(inner, list) else [inner]
        return [value]
    return value


class _SoapModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)


# --------------------------------------------------------------------
# Request parameters
# --------------------------------------------------------------------
class DIDParam(_SoapModel):
    tn: str
    epg: Optional[str] = None
    cnam: Optional[bool] = None
    t38: Optional[bool] = None
    webhook_url: Optional[str] = Field(default=None, alias="webhook")

    def to_soap(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


# --------------------------------------------------------------------
# Response bodies (the <Operation>Result element of each call)
# --------------------------------------------------------------------
class DIDGroup(_SoapModel):
    id: int = Field(alias="ID")
    name: Optional[str] = Field(default=None, alias="Name")


class DID(_SoapModel):
    tn: str
    rate_center: Optional[str] = Field(default=None, alias="rateCenter")
    state: Optional[str] = None
    tier: Optional[str] = None
    status: Optional[str] = None


class SMSCampaign(_SoapModel):
    campaign_id: str = Field(alias="CampaignId")
    name: Optional[str] = Field(default=None, alias="Name")
    status: Optional[str] = Field(default=None, alias="Status")


class _ProviderResult(_SoapModel):
    response_code: Optional[int] = Field(default=None, alias="responseCode")
    response_message: Optional[str] = Field(default=None, alias="responseMessage")


class DIDResponse(_ProviderResult):
    did_groups: List[DIDGroup] = Field(default_factory=list, alias="DIDGroups")
    dids: List[DID] = Field(default_factory=list, alias="DIDs")

    @field_validator("did_groups", "dids", mode="before")
    @classmethod
    def flatten_arrays(cls, value: Any) -> Any:
        return _unwrap_array(value)


class IntlResponse(_ProviderResult):
    dids: List[DID] = Field(default_factory=list, alias="DIDs")

    @field_validator("dids", mode="before")
    @classmethod
    def flatten_arrays(cls, value: Any) -> Any:
        return _unwrap_array(value)


class SMSResponse(_ProviderResult):
    pass


class SMS10DLCResponse(_ProviderResult):
    campaigns: List[SMSCampaign] = Field(default_factory=list, alias="Campaigns")

    @field_validator("campaigns", mode="before")
    @classmethod
    def flatten_arrays(cls, value: Any) -> Any:
        return _unwrap_array(value)
