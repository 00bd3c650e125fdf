"""Post API schemas."""

from datetime import datetime

from pydantic import BaseModel, Field


class CreatePostRequest(BaseModel):
    title: str = Field(min_length=1, max_length=300)
    content: str


class UpdatePostRequest(BaseModel):
    title: str = Field(min_length=1, max_length=300)
    content: str


class Post(BaseModel):
    id: str
    title: str
    content: str
    published: bool
    author_id: str
    created_at: datetime
    updated_at: datetime
