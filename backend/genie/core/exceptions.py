from fastapi import HTTPException, status


class EstimationConfigError(ValueError):
    """Raised when the estimation calibration cannot be used (zero divisors, non-finite values...)."""


class LLMResponseError(ValueError):
    """Raised when the model answer cannot be parsed into the expected JSON object."""


class ProjectNotFoundError(HTTPException):
    def __init__(self, project_id: str):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Project {project_id} not found"
        )


class WorkspaceNotFoundError(HTTPException):
    def __init__(self, project_id: str, document_id: str):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Workspace {document_id} not found in project {project_id}"
        )


class SectionNotFoundError(HTTPException):
    def __init__(self, document_id: str, section_id: str):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Section {section_id} not found in workspace {document_id}"
        )


class BlockNotFoundError(HTTPException):
    def __init__(self, section_id: str, block_id: str):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Block {block_id} not found in section {section_id}"
        )


class EstimationLockedError(HTTPException):
    def __init__(self, project_id: str, locked_by: str = None):
        who = f" by {locked_by}" if locked_by else ""
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Estimation for project {project_id} is locked{who}"
        )


class UnsupportedFileTypeError(HTTPException):
    def __init__(self, filename: str):
        super().__init__(
            status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            detail=f"Unsupported file type: {filename}"
        )


class LLMServiceError(HTTPException):
    def __init__(self, message: str):
        super().__init__(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"LLM service error: {message}"
        )
