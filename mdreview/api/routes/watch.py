"""Server-sent events for markdown file changes."""

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from mdreview.api.deps import get_watch_service
from mdreview.services.watch_service import WatchService

router = APIRouter()


@router.get("/watch", include_in_schema=False)
async def watch_files(watch_service: WatchService = Depends(get_watch_service)) -> StreamingResponse:
    return StreamingResponse(
        watch_service.stream(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
    )
