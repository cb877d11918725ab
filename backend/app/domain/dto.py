from datetime import datetime
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from typing import Optional, List, Literal
import re

from app.config import MIN_SCORE, MAX_SCORE, MAX_REVIEW_LENGTH

class Token(BaseModel):
    access_token: str
    token_type: str

class TokenData(BaseModel):
    user_id: Optional[int] = None
    username: Optional[str] = None

class UserCreate(BaseModel):
    username: str = Field(..., min_length=3, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=8)

    @field_validator('password')
    @classmethod
    def password_strength(cls, v):
        if not re.search(r'[A-Z]', v):
            raise ValueError('Password must contain at least one uppercase letter')
        if not re.search(r'[a-z]', v):
            raise ValueError('Password must contain at least one lowercase letter')
        if not re.search(r'[0-9]', v):
            raise ValueError('Password must contain at least one digit')
        return v

class UserResponse(BaseModel):
    id: int
    username: str
    email: EmailStr


class UserProfile(BaseModel):
    id: int
    username: str
    email: str
    is_admin: bool


class UserSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    email: str
    created_at: Optional[datetime] = None


class AdminUserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    email: str
    is_active: bool
    is_admin: bool
    created_at: Optional[datetime] = None


class UserActivity(BaseModel):
    total_ratings: int
    total_reviews: int


class AdminUserDetail(BaseModel):
    user: AdminUserResponse
    stats: UserActivity


class UserRoleUpdate(BaseModel):
    is_admin: bool


class UserStatusUpdate(BaseModel):
    is_active: bool


# ---- ratings ----

class RatingCreate(BaseModel):
    movie_id: int
    score: int = Field(..., ge=MIN_SCORE, le=MAX_SCORE, strict=True)

class RatingResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    movie_id: int
    score: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ---- reviews ----

class ReviewCreate(BaseModel):
    movie_id: int
    rating: int = Field(..., ge=MIN_SCORE, le=MAX_SCORE, strict=True)
    content: str = Field(..., min_length=1, max_length=MAX_REVIEW_LENGTH)

    @field_validator('content')
    @classmethod
    def content_not_blank(cls, v):
        if not v.strip():
            raise ValueError('Review content is required')
        return v.strip()

class ReviewUpdate(BaseModel):
    rating: int = Field(..., ge=MIN_SCORE, le=MAX_SCORE, strict=True)
    content: str = Field(..., min_length=1, max_length=MAX_REVIEW_LENGTH)

    @field_validator('content')
    @classmethod
    def content_not_blank(cls, v):
        if not v.strip():
            raise ValueError('Review content is required')
        return v.strip()

class ReviewResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    username: Optional[str] = None
    movie_id: int
    movie_title: Optional[str] = None
    rating: int
    content: str
    helpful_votes: int
    unhelpful_votes: int
    is_edited: bool
    edited_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

class AdminReviewResponse(ReviewResponse):
    is_hidden: bool

class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int

class ReviewPage(BaseModel):
    reviews: List[ReviewResponse]
    pagination: Pagination

class AdminReviewPage(BaseModel):
    reviews: List[AdminReviewResponse]
    pagination: Pagination

class ReviewVoteRequest(BaseModel):
    vote_type: Literal["helpful", "unhelpful"]

class VoteTallyResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    review_id: int
    helpful_votes: int
    unhelpful_votes: int

class ReviewVisibilityUpdate(BaseModel):
    is_hidden: bool


# ---- movies ----

class MovieCreate(BaseModel):
    title: str = Field(..., min_length=1)
    original_title: Optional[str] = None
    description: str = Field(..., min_length=1, max_length=2000)
    release_year: int = Field(..., ge=1800, le=datetime.now().year + 5)
    duration: int = Field(..., ge=1, description="Duration in minutes")
    country: str = Field(..., min_length=1)
    language: str = "English"
    poster_url: str = Field(..., min_length=1)
    background_url: Optional[str] = None
    trailer_url: Optional[str] = None
    genres: List[str] = []
    is_active: bool = True

class MovieUpdate(BaseModel):
    # unknown keys (e.g. average_rating) are dropped by pydantic
    title: Optional[str] = Field(None, min_length=1)
    original_title: Optional[str] = None
    description: Optional[str] = Field(None, min_length=1, max_length=2000)
    release_year: Optional[int] = Field(None, ge=1800, le=datetime.now().year + 5)
    duration: Optional[int] = Field(None, ge=1)
    country: Optional[str] = Field(None, min_length=1)
    language: Optional[str] = None
    poster_url: Optional[str] = Field(None, min_length=1)
    background_url: Optional[str] = None
    trailer_url: Optional[str] = None
    genres: Optional[List[str]] = None
    is_active: Optional[bool] = None

class MovieResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    original_title: Optional[str] = None
    description: str
    release_year: int
    duration: int
    country: str
    language: Optional[str] = None
    poster_url: str
    background_url: Optional[str] = None
    trailer_url: Optional[str] = None
    genres: List[str]
    views: int
    is_active: bool
    average_rating: float
    total_ratings: int
    total_reviews: int

class MovieStatsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    movie_id: int
    average_rating: float
    total_ratings: int
    total_reviews: int

class MoviePage(BaseModel):
    movies: List[MovieResponse]
    pagination: Pagination

class AdminUserPage(BaseModel):
    users: List[AdminUserResponse]
    pagination: Pagination


class TopRatedMovie(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    poster_url: str
    average_rating: float
    total_ratings: int


# ---- admin ----

class DashboardCounts(BaseModel):
    total_users: int
    total_movies: int
    total_reviews: int
    total_ratings: int
    new_users: int
    old_users: int

class ChartPoint(BaseModel):
    date: str
    value: int

class DashboardStats(BaseModel):
    stats: DashboardCounts
    chart_data: List[ChartPoint]
    recent_users: List[UserSummary]
    top_rated_movies: List[TopRatedMovie]

class ReconcileResponse(BaseModel):
    movies_corrected: int
