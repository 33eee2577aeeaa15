from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status
from fastapi import Response as HttpResponse

from kanban_api.api.results import raise_for_result
from kanban_api.core.deps import get_work_item_repository
from kanban_api.core.lifecycle import Response, State
from kanban_api.repositories import WorkItemRepository
from kanban_api.schemas.common import CreatedResponse, MessageResponse
from kanban_api.schemas.work_items import (
    WorkItemChanges,
    WorkItemCreate,
    WorkItemDetails,
    WorkItemRead,
    WorkItemUpdate,
)

router = APIRouter(prefix="/work-items", tags=["Work Items"])


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=List[WorkItemRead],
    summary="List work items",
    description="List work items, optionally filtered by state, tag name or assignee (one filter at a time).",
)
async def list_work_items(
    state: Optional[State] = Query(None, description="Filter by state"),
    tag: Optional[str] = Query(None, description="Filter by exact tag name"),
    user_id: Optional[int] = Query(None, description="Filter by assigned user id"),
    repo: WorkItemRepository = Depends(get_work_item_repository),
) -> List[WorkItemRead]:
    given = [f for f in (state, tag, user_id) if f is not None]
    if len(given) > 1:
        raise HTTPException(status_code=400, detail="Use at most one of state, tag, user_id")
    if state is not None:
        return await repo.read_by_state(state)
    if tag is not None:
        return await repo.read_by_tag(tag)
    if user_id is not None:
        return await repo.read_by_user(user_id)
    return await repo.read()


# PUBLIC_INTERFACE
@router.get("/removed", response_model=List[WorkItemRead], summary="List removed work items")
async def list_removed_work_items(
    repo: WorkItemRepository = Depends(get_work_item_repository),
) -> List[WorkItemRead]:
    return await repo.read_removed()


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=CreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create work item",
    description="Create a work item in state New. Answers 400 when the assignee does not exist.",
)
async def create_work_item(
    payload: WorkItemCreate,
    repo: WorkItemRepository = Depends(get_work_item_repository),
) -> CreatedResponse:
    result, item_id = await repo.create(payload)
    raise_for_result(result, "Assigned user does not exist")
    return CreatedResponse(id=item_id)


# PUBLIC_INTERFACE
@router.get("/{item_id}", response_model=WorkItemDetails, summary="Get work item")
async def get_work_item(
    item_id: int = Path(...),
    repo: WorkItemRepository = Depends(get_work_item_repository),
) -> WorkItemDetails:
    item = await repo.find(item_id)
    if item is None:
        raise HTTPException(status_code=404, detail="Work item not found")
    return item


# PUBLIC_INTERFACE
@router.put("/{item_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Update work item")
async def update_work_item(
    payload: WorkItemChanges,
    item_id: int = Path(...),
    repo: WorkItemRepository = Depends(get_work_item_repository),
) -> HttpResponse:
    result = await repo.update(WorkItemUpdate(id=item_id, **payload.model_dump()))
    raise_for_result(result, f"Work item {item_id} not found")
    return HttpResponse(status_code=status.HTTP_204_NO_CONTENT)


# PUBLIC_INTERFACE
@router.delete(
    "/{item_id}",
    summary="Delete work item",
    description=(
        "New items are deleted (204). Active items are moved to Removed (200). "
        "Resolved, Closed and Removed items cannot be deleted (409)."
    ),
    responses={200: {"model": MessageResponse}, 204: {"description": "Deleted"}},
)
async def delete_work_item(
    item_id: int = Path(...),
    repo: WorkItemRepository = Depends(get_work_item_repository),
):
    result = await repo.delete(item_id)
    raise_for_result(result, f"Work item {item_id} cannot be deleted in its current state")
    if result == Response.UPDATED:
        return MessageResponse(message="Work item moved to Removed", details={"id": item_id})
    return HttpResponse(status_code=status.HTTP_204_NO_CONTENT)
