from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status
from fastapi import Response as HttpResponse

from kanban_api.api.results import raise_for_result
from kanban_api.core.deps import get_tag_repository
from kanban_api.repositories import TagRepository
from kanban_api.schemas.common import CreatedResponse
from kanban_api.schemas.tags import TagCreate, TagRead, TagUpdate

router = APIRouter(prefix="/tags", tags=["Tags"])


# PUBLIC_INTERFACE
@router.get("", response_model=List[TagRead], summary="List tags")
async def list_tags(repo: TagRepository = Depends(get_tag_repository)) -> List[TagRead]:
    return await repo.read()


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=CreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create tag",
    description="Create a tag. Answers 409 with the existing id when the name is taken.",
)
async def create_tag(
    payload: TagCreate,
    repo: TagRepository = Depends(get_tag_repository),
) -> CreatedResponse:
    result, tag_id = await repo.create(payload)
    raise_for_result(result, "Tag with this name already exists", {"id": tag_id})
    return CreatedResponse(id=tag_id)


# PUBLIC_INTERFACE
@router.get("/{tag_id}", response_model=TagRead, summary="Get tag")
async def get_tag(
    tag_id: int = Path(...),
    repo: TagRepository = Depends(get_tag_repository),
) -> TagRead:
    tag = await repo.find(tag_id)
    if tag is None:
        raise HTTPException(status_code=404, detail="Tag not found")
    return tag


# PUBLIC_INTERFACE
@router.put("/{tag_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Rename tag")
async def update_tag(
    payload: TagCreate,
    tag_id: int = Path(...),
    repo: TagRepository = Depends(get_tag_repository),
) -> HttpResponse:
    result = await repo.update(TagUpdate(id=tag_id, name=payload.name))
    raise_for_result(result, f"Tag {tag_id} could not be renamed")
    return HttpResponse(status_code=status.HTTP_204_NO_CONTENT)


# PUBLIC_INTERFACE
@router.delete(
    "/{tag_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete tag",
    description="Refused with 409 while work items carry the tag, unless force=true.",
)
async def delete_tag(
    tag_id: int = Path(...),
    force: bool = Query(False, description="Detach the tag from work items and delete it"),
    repo: TagRepository = Depends(get_tag_repository),
) -> HttpResponse:
    result = await repo.delete(tag_id, force=force)
    raise_for_result(result, f"Tag {tag_id} could not be deleted")
    return HttpResponse(status_code=status.HTTP_204_NO_CONTENT)
