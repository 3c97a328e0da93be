import functools
from typing import Callable

from chalice import Response

from chalicelib.constants.status_codes import http500
from chalicelib.utils.exceptions import MenuError, PartialMutation
from chalicelib.utils.logger import logger, log_exception


def error_response(error: Exception, msg: str = "", status_code: int = 400, extra: dict = None, *args, **kwargs):
    log_exception(error=error, msg=msg, status_code=status_code, *args, **kwargs)
    return Response(
        body={
            'error': str(error),
            'exception': error.__class__.__name__,
            "message": str(msg),
            'error_id': getattr(logger, 'current_request_id'),
            'level': getattr(error, 'LEVEL', 'exception'),
            **(extra or {})
        },
        status_code=status_code,
        headers={'Content-Type': 'application/json'}
    )


def request_exception_handler(func: Callable):
    @functools.wraps(func)
    def result(*args, **kwargs):
        try:
            logger.info(f'Calling function {func.__name__}')
            return func(*args, **kwargs)
        except PartialMutation as partial_mutation:
            return error_response(
                error=partial_mutation,
                msg=f'function = {func.__name__}, operation was applied partially, no rollback was made',
                status_code=partial_mutation.STATUS_CODE,
                extra=partial_mutation.to_dict())
        except MenuError as menu_error:
            return error_response(
                error=menu_error,
                msg=f'function = {func.__name__} , error = {menu_error}',
                status_code=menu_error.STATUS_CODE)
        except Exception as exception:
            return error_response(
                error=exception,
                msg=f'function = {func.__name__}, error = {exception}',
                status_code=http500)
    return result


def log_start_finish(func: Callable):
    @functools.wraps(func)
    def result(*args, **kwargs):
        logger.info(f'{func.__name__} ::: started')
        response = func(*args, **kwargs)
        logger.info(f'{func.__name__} ::: finished')
        return response
    return result
