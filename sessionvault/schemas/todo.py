"""Pydantic schemas for the todo API."""

from pydantic import BaseModel, Field


class TodoCreate(BaseModel):
    """Request to create a todo."""

    title: str = Field(..., min_length=1, max_length=200)


class TodoResponse(BaseModel):
    """A todo owned by the authenticated user."""

    user_id: int
    title: str
