"""API routes for line-annotated HTML and selection resolution."""

from fastapi import APIRouter, Depends, Response

from mdreview.api.deps import get_file_service, get_renderer
from mdreview.schemas.files import RenderedMarkdownResponse
from mdreview.schemas.selection import SelectionPayload, SelectionResolveResponse
from mdreview.services.annotator import MarkdownRenderer
from mdreview.services.file_service import FileService, MarkdownDocument
from mdreview.services.selection_resolver import resolve_with_text, selection_from_payload

router = APIRouter()


def _load(file_service: FileService, path: str | None) -> MarkdownDocument:
    if path is None:
        return file_service.read_configured_file()
    return file_service.read_markdown(path)


def _render(renderer: MarkdownRenderer, document: MarkdownDocument) -> RenderedMarkdownResponse:
    return RenderedMarkdownResponse(
        html=renderer.render(document.content),
        filename=document.filename,
        path=document.path,
    )


def _resolve(
    renderer: MarkdownRenderer,
    document: MarkdownDocument,
    payload: SelectionPayload,
) -> SelectionResolveResponse:
    container = renderer.render_tree(document.content)
    selection = selection_from_payload(container, payload)
    if selection is None:
        return SelectionResolveResponse(anchor=None, selected_text="")

    resolved = resolve_with_text(selection, container)
    if resolved is None:
        selected_text = selection.to_string(container) if selection.within(container) else ""
        return SelectionResolveResponse(anchor=None, selected_text=selected_text)
    return SelectionResolveResponse(anchor=resolved.anchor, selected_text=resolved.selected_text)


@router.get("/render", response_model=RenderedMarkdownResponse, response_model_exclude_none=True)
async def render_configured_markdown(
    file_service: FileService = Depends(get_file_service),
    renderer: MarkdownRenderer = Depends(get_renderer),
) -> RenderedMarkdownResponse:
    """Annotated HTML of the single configured file."""
    return _render(renderer, _load(file_service, None))


@router.get("/render/highlight.css", include_in_schema=False)
async def highlight_stylesheet(renderer: MarkdownRenderer = Depends(get_renderer)) -> Response:
    """Pygments styles for the highlighted code blocks in rendered previews."""
    return Response(renderer.highlight_css(), media_type="text/css")


@router.post("/render/selection", response_model=SelectionResolveResponse)
async def resolve_configured_selection(
    payload: SelectionPayload,
    file_service: FileService = Depends(get_file_service),
    renderer: MarkdownRenderer = Depends(get_renderer),
) -> SelectionResolveResponse:
    return _resolve(renderer, _load(file_service, None), payload)


@router.post("/render/{path:path}/selection", response_model=SelectionResolveResponse)
async def resolve_selection(
    path: str,
    payload: SelectionPayload,
    file_service: FileService = Depends(get_file_service),
    renderer: MarkdownRenderer = Depends(get_renderer),
) -> SelectionResolveResponse:
    """Map a selection in the rendered preview to its source line range.

    Endpoints are addressed by child indices from the preview root, matching
    the tree of the HTML returned by ``GET /render/{path}``. ``anchor`` is
    null when the selection is collapsed, leaves the preview or has no
    annotated ancestor.
    """
    return _resolve(renderer, _load(file_service, path), payload)


@router.get("/render/{path:path}", response_model=RenderedMarkdownResponse)
async def render_markdown(
    path: str,
    file_service: FileService = Depends(get_file_service),
    renderer: MarkdownRenderer = Depends(get_renderer),
) -> RenderedMarkdownResponse:
    return _render(renderer, _load(file_service, path))
