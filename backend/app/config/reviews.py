# Rating scale shared by standalone ratings and the score attached to a review
MIN_SCORE = 1
MAX_SCORE = 10

# averageRating is stored with this many fractional digits
AVERAGE_RATING_DECIMALS = 1

MAX_REVIEW_LENGTH = 5000

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100

# When False, deleting a review leaves the author's rating in place and it keeps
# counting toward the movie average until the rating itself is removed.
DELETE_REVIEW_REMOVES_RATING = False

# minimum number of ratings for a movie to show up in "top rated" listings
TOP_RATED_MIN_RATINGS = 1
DASHBOARD_TOP_RATED_MIN_RATINGS = 5

# dashboard windows
NEW_USER_WINDOW_DAYS = 30
RATING_CHART_DAYS = 12

