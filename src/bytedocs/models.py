from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Parameter(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    in_: str = Field(alias="in")
    type: str = "string"
    required: bool = False
    description: str = ""
    example: Any = None


class HandlerInfo(BaseModel):
    summary: str = ""
    description: str = ""
    parameters: list[Parameter] = Field(default_factory=list)


class RequestBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    content_type: str = "application/json"
    schema_: dict[str, Any] | None = Field(default=None, alias="schema")
    example: Any = None
    required: bool = True


class Response(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    description: str = "Response"
    schema_: dict[str, Any] | None = Field(default=None, alias="schema")
    example: Any = None
    content_type: str = "application/json"


class HandlerMetadata(BaseModel):
    """Documentation derived for one handler function.

    An empty instance (no summary, no request body, no responses) means no
    documentation is available for the route; it is not an error.
    """

    info: HandlerInfo = Field(default_factory=HandlerInfo)
    request_body: RequestBody | None = None
    responses: dict[str, Response] = Field(default_factory=dict)

    def is_empty(self) -> bool:
        return (
            not self.info.summary
            and not self.info.description
            and not self.info.parameters
            and self.request_body is None
            and not self.responses
        )
