"""
Shared pydantic building blocks for the ledger API.

Wire format is camelCase JSON. Request models are closed: unknown keys,
including any attempt to send an organization id, are rejected.
"""
from typing import List
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
     """camelCase aliases; snake_case names are accepted too."""

     model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RequestModel(CamelModel):
     """Base for request bodies."""

     model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)


class ResponseModel(CamelModel):
     """Base for response bodies built from ORM objects."""

     model_config = ConfigDict(from_attributes=True)


CURRENCY_PATTERN = r"^[A-Z]{3}$"


class BulkDeleteRequest(RequestModel):
     """Body for POST .../bulk-delete."""
     ids: List[str] = Field(..., min_length=1, description="Record IDs to delete")

     model_config = ConfigDict(
          json_schema_extra={
               "example": {"ids": ["0b6c1f7e-3c1a-4d55-9a0e-5d1e2f3a4b5c"]}
          }
     )


class DeleteResponse(CamelModel):
     deleted: int


class ErrorResponse(BaseModel):
     """Error body returned for ledger errors."""
     error: str
     detail: str


# OpenAPI documentation of ledger error bodies, shared by the routers
LEDGER_ERROR_RESPONSES = {
     404: {"model": ErrorResponse, "description": "Record not found in the caller's organization"},
     409: {"model": ErrorResponse, "description": "Concurrent update or dependent records"},
}
