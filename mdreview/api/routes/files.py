"""API routes for listing and reading markdown files."""

from fastapi import APIRouter, Depends

from mdreview.api.deps import get_file_service
from mdreview.schemas.files import FileInfo, FileListResponse, MarkdownResponse
from mdreview.services.file_service import FileService

router = APIRouter()


@router.get("/files", response_model=FileListResponse)
async def list_files(file_service: FileService = Depends(get_file_service)) -> FileListResponse:
    """List markdown files below the served directory."""
    entries = file_service.list_markdown_files()
    return FileListResponse(
        files=[FileInfo(name=e.name, path=e.path, dir=e.dir) for e in entries],
        base_dir=str(file_service.base_dir),
    )


@router.get("/markdown", response_model=MarkdownResponse, response_model_exclude_none=True)
async def get_configured_markdown(
    file_service: FileService = Depends(get_file_service),
) -> MarkdownResponse:
    """Content of the file given on the command line (single-file mode)."""
    document = file_service.read_configured_file()
    return MarkdownResponse(content=document.content, filename=document.filename)


@router.get("/markdown/{path:path}", response_model=MarkdownResponse)
async def get_markdown(
    path: str,
    file_service: FileService = Depends(get_file_service),
) -> MarkdownResponse:
    document = file_service.read_markdown(path)
    return MarkdownResponse(content=document.content, filename=document.filename, path=document.path)
