import sys
import contextlib
from typing import Any, Iterator, Optional
from loguru import logger

from movie_common.config import Settings, get_settings

_configured = False


def configure_logging(settings: Optional[Settings] = None, force: bool = False) -> None:
    """Replaces loguru's default sink with one honoring LOG_LEVEL / LOG_JSON."""
    global _configured
    if _configured and not force:
        return

    settings = settings or get_settings()
    logger.remove()
    logger.add(
        sys.stderr,
        level=settings.log_level,
        serialize=settings.log_json,
        backtrace=False,
        diagnose=False,
    )
    _configured = True


@contextlib.contextmanager
def request_context(context: Any, **extra: Any) -> Iterator[None]:
    """Binds the Lambda request id (and any extra fields) to every log line."""
    request_id = getattr(context, "aws_request_id", None) or "-"
    with logger.contextualize(request_id=request_id, **extra):
        yield
