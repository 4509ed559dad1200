from tradebook.shared.schemas.base import (
    BaseSchema,
    PaginatedResponse,
    SuccessResponse,
    ApiResponse,
    ErrorResponse,
    ErrorDetail,
    LenientDecimal,
    OptionalLenientDecimal,
)

__all__ = [
    "BaseSchema",
    "PaginatedResponse",
    "SuccessResponse",
    "ApiResponse",
    "ErrorResponse",
    "ErrorDetail",
    "LenientDecimal",
    "OptionalLenientDecimal",
]
