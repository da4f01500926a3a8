"""Error taxonomy for workspace and file operations.

Every error carries a ``category`` (stable, machine-readable) and the HTTP
status the API layer answers with. Handlers in ``excaliweb.main`` turn them
into ``{"error": category, "detail": message}`` responses.
"""


class FileManagerError(Exception):
    """Base class for all client-visible file manager failures."""

    category = "file_manager_error"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class MalformedIdentifier(FileManagerError):
    category = "malformed_identifier"
    status_code = 400


class NoWorkspaceSelected(FileManagerError):
    category = "no_workspace_selected"
    status_code = 409

    def __init__(self, message: str = "No workspace selected"):
        super().__init__(message)


class PathEscape(FileManagerError):
    """A path resolved outside the workspace or the data root."""

    category = "path_escape"
    status_code = 403

    def __init__(self, message: str, boundary: str = "workspace"):
        super().__init__(message)
        self.boundary = boundary


class WorkspaceMissing(FileManagerError):
    category = "workspace_missing"
    status_code = 404

    def __init__(self, message: str = "Workspace path does not exist"):
        super().__init__(message)


class NotFound(FileManagerError):
    category = "not_found"
    status_code = 404


class AlreadyExists(FileManagerError):
    category = "already_exists"
    status_code = 409


class NotADirectory(FileManagerError):
    category = "not_a_directory"
    status_code = 400

    def __init__(self, message: str = "Path is not a directory"):
        super().__init__(message)


class RootDeletionForbidden(FileManagerError):
    category = "root_deletion_forbidden"
    status_code = 403

    def __init__(self, message: str = "Cannot delete workspace root directory"):
        super().__init__(message)


class CorruptDocument(FileManagerError):
    category = "corrupt_document"
    status_code = 422


class InvalidName(FileManagerError):
    category = "invalid_name"
    status_code = 400


class AccessDenied(FileManagerError):
    category = "access_denied"
    status_code = 403


class OperationFailed(FileManagerError):
    """Filesystem failure that has no more specific category."""

    category = "operation_failed"
    status_code = 500
