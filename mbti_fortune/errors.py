from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse


class FortuneError(Exception):
    """An endpoint failure that is reported to the caller as {"error": message}."""

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


async def fortune_error_handler(request: Request, exc: FortuneError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(FortuneError, fortune_error_handler)
