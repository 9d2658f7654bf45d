from fastapi.responses import JSONResponse


def success_response(data=None, message="OK", status=200):
    return JSONResponse(
        status_code=status,
        content={
            "ok": True,
            "data": data if data is not None else {},
            "error": None,
            "message": message,
        }
    )


def error_response(error_code, status=400, message="An error occurred", data=None):
    return JSONResponse(
        status_code=status,
        content={
            "ok": False,
            "data": data or {},
            "error": error_code,
            "message": message,
        }
    )


def from_service_result(result: dict, error_status: int = 400, message: str = "OK"):
    """
    Turn a normalized service result ({"data": ..., "is_error": False} or
    {"error": str, "is_error": True}) into a JSON response.
    """
    if result.get("is_error"):
        return error_response(
            result.get("error", "Unknown error"),
            status=result.get("status", error_status),
            message=result.get("message", "An error occurred"),
            data=result.get("details"),
        )
    return success_response(result.get("data"), message=message)
