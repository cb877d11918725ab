from sqlalchemy import (
    Column, Integer, String, Text, Boolean, DateTime, Float, ForeignKey,
    CheckConstraint, UniqueConstraint, Index
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.db.database import Base

class UserORM(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, unique=True, index=True)
    email = Column(String, unique=True, index=True)
    hashed_password = Column(String)
    is_active = Column(Boolean, default=True)
    is_admin = Column(Boolean, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    ratings = relationship("RatingORM", back_populates="user", cascade="all, delete-orphan", passive_deletes=True)
    reviews = relationship("ReviewORM", back_populates="user", cascade="all, delete-orphan", passive_deletes=True)
    review_votes = relationship("ReviewVoteORM", back_populates="user", cascade="all, delete-orphan", passive_deletes=True)


class MovieORM(Base):
    __tablename__ = "movies"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    original_title = Column(String)
    description = Column(Text, nullable=False)
    release_year = Column(Integer, nullable=False, index=True)
    duration = Column(Integer, nullable=False)
    country = Column(String, nullable=False)
    language = Column(String, default="English")
    poster_url = Column(String, nullable=False)
    background_url = Column(String)
    trailer_url = Column(String)
    genres = Column(String, default="[]")
    views = Column(Integer, default=0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    # derived, written only by the aggregation service
    average_rating = Column(Float, default=0.0, nullable=False, index=True)
    total_ratings = Column(Integer, default=0, nullable=False)
    total_reviews = Column(Integer, default=0, nullable=False)

    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    ratings = relationship("RatingORM", back_populates="movie", cascade="all, delete-orphan", passive_deletes=True)
    reviews = relationship("ReviewORM", back_populates="movie", cascade="all, delete-orphan", passive_deletes=True)

    __table_args__ = (
        CheckConstraint("average_rating >= 0 AND average_rating <= 10", name="ck_movies_average_rating_range"),
        CheckConstraint("total_ratings >= 0", name="ck_movies_total_ratings_non_negative"),
        CheckConstraint("total_reviews >= 0", name="ck_movies_total_reviews_non_negative"),
    )


class RatingORM(Base):
    __tablename__ = "ratings"

    # composite key: one rating per (user, movie)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    movie_id = Column(Integer, ForeignKey("movies.id", ondelete="CASCADE"), primary_key=True, index=True)
    score = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    user = relationship("UserORM", back_populates="ratings")
    movie = relationship("MovieORM", back_populates="ratings")

    __table_args__ = (
        CheckConstraint("score >= 1 AND score <= 10", name="ck_ratings_score_range"),
    )


class ReviewORM(Base):
    __tablename__ = "reviews"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    movie_id = Column(Integer, ForeignKey("movies.id", ondelete="CASCADE"), nullable=False, index=True)
    rating = Column(Integer, nullable=False)
    content = Column(Text, nullable=False)
    is_hidden = Column(Boolean, default=False, nullable=False)
    helpful_votes = Column(Integer, default=0, nullable=False)
    unhelpful_votes = Column(Integer, default=0, nullable=False)
    is_edited = Column(Boolean, default=False, nullable=False)
    edited_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    user = relationship("UserORM", back_populates="reviews")
    movie = relationship("MovieORM", back_populates="reviews")
    votes = relationship("ReviewVoteORM", back_populates="review", cascade="all, delete-orphan", passive_deletes=True)

    __table_args__ = (
        UniqueConstraint("user_id", "movie_id", name="uq_reviews_user_movie"),
        CheckConstraint("rating >= 1 AND rating <= 10", name="ck_reviews_rating_range"),
        CheckConstraint("helpful_votes >= 0 AND unhelpful_votes >= 0", name="ck_reviews_votes_non_negative"),
        Index("ix_reviews_movie_hidden", "movie_id", "is_hidden"),
    )


class ReviewVoteORM(Base):
    __tablename__ = "review_votes"

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    review_id = Column(Integer, ForeignKey("reviews.id", ondelete="CASCADE"), primary_key=True, index=True)
    vote_type = Column(String(16), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    user = relationship("UserORM", back_populates="review_votes")
    review = relationship("ReviewORM", back_populates="votes")

    __table_args__ = (
        CheckConstraint("vote_type IN ('helpful', 'unhelpful')", name="ck_review_votes_type"),
    )
