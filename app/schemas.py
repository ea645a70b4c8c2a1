from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime


# --- User ---

class UserResponse(BaseModel):
    id: str
    email: str
    name: str
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


# --- Task ---

class TaskCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: str = ""
    completed: bool = False


class TaskUpdate(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    completed: bool | None = None


# --- Social media post ---

class PostCreate(BaseModel):
    post_text: str = Field(min_length=1)
    post_image: str = ""


class PostUpdate(BaseModel):
    post_text: str | None = Field(None, min_length=1)
    post_image: str | None = None


# --- Comment ---

class CommentCreate(BaseModel):
    comment_text: str = Field(min_length=1)


# --- Pagination ---

class PostPage(BaseModel):
    posts: list  # serialised post dicts from post_service
    total_count: int
    filtered_count: int
    current_page: int
    page_size: int
    total_pages: int
