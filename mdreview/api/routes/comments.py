"""API routes for line-anchored review comments.

Comments are keyed by the file path they were written against; in
single-file mode the key is the file name.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from mdreview.api.deps import get_comment_repository
from mdreview.schemas.comment import (
    Comment,
    CommentExportResponse,
    CommentListResponse,
    CreateCommentRequest,
    UpdateCommentRequest,
)
from mdreview.services.comment_export import format_comments
from mdreview.services.comment_store import CommentRepository, SortOrder

router = APIRouter()


# Id routes are registered before the bare path routes and use the uuid
# converter, so ``docs/a.md/<id>`` never reads as the path ``docs/a.md/<id>``.


@router.patch("/comments/{path:path}/{comment_id:uuid}", response_model=Comment)
async def update_comment(
    path: str,
    comment_id: UUID,
    request: UpdateCommentRequest,
    repository: CommentRepository = Depends(get_comment_repository),
) -> Comment:
    """Replace a comment's text. Its line range never changes."""
    updated = repository.store_for(path).edit(str(comment_id), request.text)
    if updated is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Comment not found")
    return updated


@router.delete("/comments/{path:path}/{comment_id:uuid}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_comment(
    path: str,
    comment_id: UUID,
    repository: CommentRepository = Depends(get_comment_repository),
) -> Response:
    """Delete one comment; deleting an unknown id is not an error."""
    repository.store_for(path).delete(str(comment_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/comments/{path:path}/export", response_model=CommentExportResponse)
async def export_comments(
    path: str,
    repository: CommentRepository = Depends(get_comment_repository),
) -> CommentExportResponse:
    """All comments of a file in clipboard format, in line order."""
    return CommentExportResponse(text=format_comments(path, repository.store_for(path).list()))


@router.get("/comments/{path:path}", response_model=CommentListResponse)
async def list_comments(
    path: str,
    sort_by: SortOrder = Query("start_line"),
    repository: CommentRepository = Depends(get_comment_repository),
) -> CommentListResponse:
    listing = repository.store_for(path).list(sort_by)
    items = list(listing)
    return CommentListResponse(items=items, total=len(items))


@router.post("/comments/{path:path}", response_model=Comment, status_code=status.HTTP_201_CREATED)
async def create_comment(
    path: str,
    request: CreateCommentRequest,
    repository: CommentRepository = Depends(get_comment_repository),
) -> Comment:
    return repository.store_for(path).add(
        text=request.text,
        selected_text=request.selected_text,
        start_line=request.start_line,
        end_line=request.end_line,
    )


@router.delete("/comments/{path:path}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_all_comments(
    path: str,
    repository: CommentRepository = Depends(get_comment_repository),
) -> Response:
    repository.store_for(path).delete_all()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
