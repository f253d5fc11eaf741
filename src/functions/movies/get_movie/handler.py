from movie_common.decorators import lambda_wrapper
from movie_common.interfaces import GetMovieRequest
from movie_common.responses import success
from movie_common.service import MovieService

service = MovieService()


@lambda_wrapper(model=GetMovieRequest)
def lambda_handler(request: GetMovieRequest, context):
    movie = service.get_movie(request.identity, request.id)
    return success(movie.to_json())
