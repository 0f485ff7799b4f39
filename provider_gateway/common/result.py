# provider_gateway/common/result.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

T = TypeVar("T")

SUCCESS_CODE = 0
SUCCESS_MESSAGE = "Success"


@dataclass(frozen=True)
class ApiResponse(Generic[T]):
    """
    Success/fault envelope returned by every outbound provider call.

    code == 0 means `value` holds the projected provider result; any other
    code is a fault and `value` is None. Build instances through
    `ApiResponse.success(...)` / `ApiResponse.error(...)`.
    """

    code: int
    message: str
    value: Optional[T] = None

    def __post_init__(self) -> None:
        if self.code == SUCCESS_CODE and self.value is None:
            raise ValueError("successful ApiResponse requires a value")
        if self.code != SUCCESS_CODE and self.value is not None:
            raise ValueError("faulted ApiResponse cannot carry a value")

    @property
    def is_success(self) -> bool:
        return self.code == SUCCESS_CODE

    @property
    def is_fault(self) -> bool:
        return self.code != SUCCESS_CODE

    @classmethod
    def success(cls, value: T) -> "ApiResponse[T]":
        return cls(code=SUCCESS_CODE, message=SUCCESS_MESSAGE, value=value)

    @classmethod
    def error(cls, code: int, message: str) -> "ApiResponse[T]":
        if code == SUCCESS_CODE:
            raise ValueError("error code must be non-zero")
        return cls(code=code, message=message, value=None)
