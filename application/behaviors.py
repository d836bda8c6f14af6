"""Application Behaviors - cross-cutting wrappers around handlers"""
import functools
import logging
import time

from domain.exceptions import DomainError

logger = logging.getLogger(__name__)


def log_operation(handle):
    """Log start, outcome and elapsed time of an async ``handle(self, request)``"""

    @functools.wraps(handle)
    async def wrapper(self, request, *args, **kwargs):
        request_type = type(request).__name__
        handler_type = type(self).__name__
        logger.debug("Processing request %s with %s", request_type, handler_type)
        started = time.perf_counter()
        try:
            response = await handle(self, request, *args, **kwargs)
        except DomainError as error:
            logger.warning(
                "Request %s rejected after %.1fms (%s): %s",
                request_type, _elapsed_ms(started), error.error_code, error.message
            )
            raise
        except Exception:
            logger.exception("Request %s failed after %.1fms", request_type, _elapsed_ms(started))
            raise
        # Command handlers report failures in the result instead of raising
        if getattr(response, "success", True) is False:
            logger.info(
                "Request %s returned a failed result after %.1fms (%s)",
                request_type, _elapsed_ms(started), response.error_kind.value
            )
        else:
            logger.info("Request %s completed in %.1fms", request_type, _elapsed_ms(started))
        return response

    return wrapper


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000
