"""Exception handlers that render errors as `{"error": message}`."""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from src.utils.errors import GradeUpError


async def gradeup_error_handler(request: Request, exc: GradeUpError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def request_validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = exc.errors()
    message = errors[0]["msg"] if errors else "Invalid request"
    return JSONResponse(status_code=400, content={"error": message})


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(GradeUpError, gradeup_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
