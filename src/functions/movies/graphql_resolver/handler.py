from movie_common.graphql_resolvers import resolve
from movie_common.logging_config import configure_logging, request_context
from movie_common.service import MovieService

service = MovieService()


def lambda_handler(event, context):
    configure_logging()
    field_name = ((event or {}).get("info") or {}).get("fieldName")
    with request_context(context, field=field_name):
        return resolve(event, service)
