"""FastAPI dependencies resolving the services built by ``create_app``."""

from fastapi import Request

from mdreview.core.config import Settings
from mdreview.services.annotator import MarkdownRenderer
from mdreview.services.comment_store import CommentRepository
from mdreview.services.file_service import FileService
from mdreview.services.preferences_service import PreferencesService
from mdreview.services.watch_service import WatchService


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_file_service(request: Request) -> FileService:
    return request.app.state.file_service


def get_renderer(request: Request) -> MarkdownRenderer:
    return request.app.state.renderer


def get_comment_repository(request: Request) -> CommentRepository:
    """Process-wide repository, so each file has exactly one comment store."""
    return request.app.state.comment_repository


def get_preferences_service(request: Request) -> PreferencesService:
    return request.app.state.preferences


def get_watch_service(request: Request) -> WatchService:
    return request.app.state.watch_service
