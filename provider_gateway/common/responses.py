# provider_gateway/common/responses.py
from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from provider_gateway.common.result import ApiResponse

# Envelope fault code -> HTTP status for the dashboard
HTTP_STATUS_FOR_CODE: Dict[int, int] = {
    -6: 400,
    -2: 504,
    -3: 503,
}
DEFAULT_FAULT_STATUS = 502


def status_for_code(code: int) -> int:
    if code == 0:
        return 200
    return HTTP_STATUS_FOR_CODE.get(code, DEFAULT_FAULT_STATUS)


class RequestResponse(BaseModel):
    """Generic response body the dashboard consumes (camelCase on the wire)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    message: str = "success"
    data: Optional[Any] = None
    is_valid: bool = True
    errors: Optional[Any] = None
    status_code: int = 200

    @classmethod
    def ok(cls, data: Any) -> "RequestResponse":
        return cls(data=data)

    @classmethod
    def fail(cls, message: str, errors: Any = None, status_code: int = 400) -> "RequestResponse":
        return cls(message=message, data=None, is_valid=False, errors=errors, status_code=status_code)

    @classmethod
    def from_fault(cls, response: ApiResponse) -> "RequestResponse":
        return cls.fail(
            response.message,
            errors={"code": response.code},
            status_code=status_for_code(response.code),
        )

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")
