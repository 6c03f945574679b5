"""Uniform response envelope for every action."""

from typing import Any, Dict, Generic, Optional, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ErrorDetail(BaseModel):
    code: str
    error: str
    message: str
    retryable: bool = False
    details: Dict[str, Any] = {}


class ActionResult(BaseModel, Generic[T]):
    """Either `data` (success) or `error` (failure), never both."""

    success: bool
    data: Optional[T] = None
    error: Optional[ErrorDetail] = None

    @classmethod
    def ok(cls, data: Optional[T] = None) -> "ActionResult[T]":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: Dict[str, Any]) -> "ActionResult[Any]":
        return cls(success=False, error=ErrorDetail(**error))
