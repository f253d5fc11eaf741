from movie_common.decorators import lambda_wrapper
from movie_common.interfaces import ListMoviesRequest
from movie_common.responses import success
from movie_common.service import MovieService

service = MovieService()


@lambda_wrapper(model=ListMoviesRequest)
def lambda_handler(request: ListMoviesRequest, context):
    page = service.list_movies(
        request.identity, limit=request.limit, next_token=request.next_token
    )
    return success(page.to_json())
