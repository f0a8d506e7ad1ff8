from typing import Union

from pydantic import BaseModel


class ValidationIssue(BaseModel):
    path: list[Union[str, int]]
    message: str
    code: str


class ValidationErrorResponse(BaseModel):
    message: str
    error: list[ValidationIssue]


class MessageResponse(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    error: str


class CacheInvalidationResponse(BaseModel):
    url: str
    invalidated: int


class HealthResponse(BaseModel):
    status: str
    service: str
