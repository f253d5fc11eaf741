from movie_common.decorators import lambda_wrapper
from movie_common.interfaces import UploadGrantRequest
from movie_common.responses import success
from movie_common.s3_client import get_uploader


@lambda_wrapper(model=UploadGrantRequest)
def lambda_handler(request: UploadGrantRequest, context):
    grant = get_uploader().get_upload_grant(
        request.identity, content_type=request.content_type, origin=request.origin
    )

    headers = {}
    if grant.allowed_origin:
        headers = {
            "Access-Control-Allow-Origin": grant.allowed_origin,
            "Vary": "Origin",
        }
    return success(grant.to_json(), headers=headers)
