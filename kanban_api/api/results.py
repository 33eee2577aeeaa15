"""Translation of repository result codes into HTTP responses."""
from __future__ import annotations

from fastapi import HTTPException, status

from kanban_api.core.lifecycle import Response

_ERROR_STATUS = {
    Response.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    Response.CONFLICT: status.HTTP_409_CONFLICT,
    Response.BAD_REQUEST: status.HTTP_400_BAD_REQUEST,
}

_SUCCESS = {Response.CREATED, Response.UPDATED, Response.DELETED}


# PUBLIC_INTERFACE
def raise_for_result(result: Response, message: str, details: dict | None = None) -> None:
    """
    Raise an HTTPException for NotFound/Conflict/BadRequest; return quietly for
    Created/Updated/Deleted.
    """
    if result in _SUCCESS:
        return
    detail = {"message": message, "result": result.value, **(details or {})}
    raise HTTPException(status_code=_ERROR_STATUS[result], detail=detail)
