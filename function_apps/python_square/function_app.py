"""
Square Azure Function.

HTTP endpoint used to smoke-test a deployment: POST an integer as the
request body and the response body is its square.

    POST /api/square   body: 926   ->   857476
"""
import logging

import azure.functions as func

app = func.FunctionApp()


def square(value: int) -> int:
    return value * value


def square_response(req: func.HttpRequest) -> func.HttpResponse:
    """Return the square of the integer in the request body."""
    body = req.get_body()
    try:
        value = int(body.decode("utf-8").strip())
    except (UnicodeDecodeError, ValueError):
        logging.warning(f"Rejected non-integer body: {body!r}")
        return func.HttpResponse(
            "Request body must be an integer",
            status_code=400
        )

    return func.HttpResponse(str(square(value)), status_code=200, mimetype="text/plain")


@app.function_name(name="square")
@app.route(route="square", methods=["POST"], auth_level=func.AuthLevel.ANONYMOUS)
def square_http(req: func.HttpRequest) -> func.HttpResponse:
    return square_response(req)
