"""Dependency injection for API routes."""
from fastapi import Request

from excaliweb.core.config import Settings
from excaliweb.services.directory_browser import DirectoryBrowser
from excaliweb.services.document_store import DocumentStore, get_document_store


def get_settings(request: Request) -> Settings:
    """Get the settings the running app was created with."""
    return request.app.state.settings


def get_store(request: Request) -> DocumentStore:
    """Document store bound to this app's workspace and data root."""
    return get_document_store(request.app.state.workspace, request.app.state.settings.data_dir)


def get_directory_browser(request: Request) -> DirectoryBrowser:
    return DirectoryBrowser(request.app.state.settings.data_dir)
