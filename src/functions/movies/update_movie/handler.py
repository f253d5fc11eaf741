from movie_common.decorators import lambda_wrapper
from movie_common.interfaces import UpdateMovieRequest
from movie_common.responses import success
from movie_common.service import MovieService

service = MovieService()


@lambda_wrapper(model=UpdateMovieRequest)
def lambda_handler(request: UpdateMovieRequest, context):
    # Full replacement: fields left out of the body are cleared.
    movie = service.update_movie(
        request.identity,
        request.id,
        title=request.title,
        publishing_year=request.publishing_year,
        poster=request.poster,
    )
    return success(movie.to_json())
