from movie_common.decorators import lambda_wrapper
from movie_common.interfaces import DeleteMovieRequest
from movie_common.responses import success
from movie_common.service import MovieService

service = MovieService()


@lambda_wrapper(model=DeleteMovieRequest)
def lambda_handler(request: DeleteMovieRequest, context):
    movie = service.delete_movie(request.identity, request.id)
    return success(movie.to_json())
