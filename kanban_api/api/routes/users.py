from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status
from fastapi import Response as HttpResponse

from kanban_api.api.results import raise_for_result
from kanban_api.core.deps import get_user_repository, get_work_item_repository
from kanban_api.repositories import UserRepository, WorkItemRepository
from kanban_api.schemas.common import CreatedResponse
from kanban_api.schemas.users import UserCreate, UserRead, UserUpdate
from kanban_api.schemas.work_items import WorkItemRead

router = APIRouter(prefix="/users", tags=["Users"])


# PUBLIC_INTERFACE
@router.get("", response_model=List[UserRead], summary="List users")
async def list_users(repo: UserRepository = Depends(get_user_repository)) -> List[UserRead]:
    return await repo.read()


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=CreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create user",
    description="Create a user. Answers 409 with the existing id when the email is taken.",
)
async def create_user(
    payload: UserCreate,
    repo: UserRepository = Depends(get_user_repository),
) -> CreatedResponse:
    result, user_id = await repo.create(payload)
    raise_for_result(result, "User with this email already exists", {"id": user_id})
    return CreatedResponse(id=user_id)


# PUBLIC_INTERFACE
@router.get("/{user_id}", response_model=UserRead, summary="Get user")
async def get_user(
    user_id: int = Path(...),
    repo: UserRepository = Depends(get_user_repository),
) -> UserRead:
    user = await repo.find(user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return user


# PUBLIC_INTERFACE
@router.get(
    "/{user_id}/work-items",
    response_model=List[WorkItemRead],
    summary="List work items assigned to a user",
)
async def list_user_work_items(
    user_id: int = Path(...),
    repo: WorkItemRepository = Depends(get_work_item_repository),
) -> List[WorkItemRead]:
    return await repo.read_by_user(user_id)


# PUBLIC_INTERFACE
@router.put("/{user_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Update user")
async def update_user(
    payload: UserCreate,
    user_id: int = Path(...),
    repo: UserRepository = Depends(get_user_repository),
) -> HttpResponse:
    result = await repo.update(UserUpdate(id=user_id, name=payload.name, email=payload.email))
    raise_for_result(result, f"User {user_id} could not be updated")
    return HttpResponse(status_code=status.HTTP_204_NO_CONTENT)


# PUBLIC_INTERFACE
@router.delete(
    "/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete user",
    description="Refused with 409 while work items are assigned, unless force=true.",
)
async def delete_user(
    user_id: int = Path(...),
    force: bool = Query(False, description="Unassign the user's work items and delete it"),
    repo: UserRepository = Depends(get_user_repository),
) -> HttpResponse:
    result = await repo.delete(user_id, force=force)
    raise_for_result(result, f"User {user_id} could not be deleted")
    return HttpResponse(status_code=status.HTTP_204_NO_CONTENT)
