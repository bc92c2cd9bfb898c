from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class GenerateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_query: str | None = Field(default=None, alias="userQuery")
    system_prompt: str | None = Field(default=None, alias="systemPrompt")


class GenerateResponse(BaseModel):
    text: str


class ErrorResponse(BaseModel):
    error: str
    details: Any = None
    message: Any = None
    received: Any = None
