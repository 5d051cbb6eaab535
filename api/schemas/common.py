"""Common Pydantic schemas shared across the API."""

from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel, Field, field_validator


T = TypeVar("T")


class PaginationParams(BaseModel):
    """Pagination query parameters."""

    page: int = Field(default=1, ge=1, description="Page number (1-indexed)")
    page_size: int = Field(default=20, ge=1, le=100, description="Items per page")

    @field_validator("page_size")
    @classmethod
    def validate_page_size(cls, v: int) -> int:
        """Ensure page_size is within bounds."""
        if v > 100:
            raise ValueError("Page size cannot exceed 100")
        return v

    @property
    def offset(self) -> int:
        """Calculate offset from page and page_size."""
        return (self.page - 1) * self.page_size


class ErrorBody(BaseModel):
    """Machine-readable error."""

    kind: str = Field(description="Error kind, e.g. illegal_transition")
    message: str = Field(description="Human readable message")
    details: Optional[dict[str, Any]] = Field(None, description="Structured context")


class ApiResponse(BaseModel, Generic[T]):
    """Envelope returned by every endpoint."""

    success: bool
    data: Optional[T] = None
    error: Optional[ErrorBody] = None
    warnings: list[dict[str, Any]] = Field(default_factory=list)

    @classmethod
    def ok(cls, data: T, warnings: Optional[list[dict[str, Any]]] = None) -> "ApiResponse[T]":
        return cls(success=True, data=data, warnings=warnings or [])
