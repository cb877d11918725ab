from app.repositories.interface.movie_repository import MovieRepository
from app.repositories.interface.rating_repository import RatingRepository
from app.repositories.interface.review_repository import ReviewRepository
from app.repositories.interface.review_vote_repository import ReviewVoteRepository
from app.repositories.interface.user_repository import UserRepository

from app.repositories.implementation.sql_alchemy_movie_repo import SQLAlchemyMovieRepo
from app.repositories.implementation.sql_alchemy_rating_repo import SQLAlchemyRatingRepo
from app.repositories.implementation.sql_alchemy_review_repo import SQLAlchemyReviewRepo
from app.repositories.implementation.sql_alchemy_review_vote_repo import SQLAlchemyReviewVoteRepo
from app.repositories.implementation.sql_alchemy_user_repo import SQLAlchemyUserRepo
