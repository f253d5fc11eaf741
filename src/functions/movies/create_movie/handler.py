from movie_common.decorators import lambda_wrapper
from movie_common.interfaces import CreateMovieRequest
from movie_common.responses import created
from movie_common.service import MovieService

service = MovieService()


@lambda_wrapper(model=CreateMovieRequest)
def lambda_handler(request: CreateMovieRequest, context):
    movie = service.create_movie(
        request.identity,
        title=request.title,
        publishing_year=request.publishing_year,
        poster=request.poster,
    )
    return created(movie.to_json())
