from fastapi import HTTPException

from ibarize.schemas.dashboard import ActionResult

_STATUS_BY_TITLE = {
    "Validation Error": 422,
    "Not Found": 404,
    "Comparison Limit Reached": 409,
    "Upload rejected": 422,
}

def action_response(result: ActionResult, error_status: int = 502) -> ActionResult:
    """Failed actions keep their toast in the error body. Backend failures default to 502."""
    if result.toast is not None and result.toast.is_error:
        status = _STATUS_BY_TITLE.get(result.toast.title, error_status)
        raise HTTPException(status_code=status, detail=result.model_dump(mode="json"))
    return result
