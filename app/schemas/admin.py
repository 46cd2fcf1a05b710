# app/schemas/admin.py
from pydantic import ConfigDict
from sqlmodel import SQLModel, Field


class AdminLogin(SQLModel):
    model_config = ConfigDict(extra="forbid")

    username: str = Field(min_length=1, max_length=50)
    password: str = Field(min_length=1, max_length=200)


class AdminToken(SQLModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
