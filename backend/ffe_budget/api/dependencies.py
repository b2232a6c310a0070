"""API dependencies and injection."""

from typing import Annotated
from fastapi import Depends
import logging

from ..config import settings
from ..services.autosave import AutoSaveService
from ..services.document_service import DocumentSession
from ..services.persistence import DocumentPersistenceService
from ..services.service_factory import (
    get_autosave_service,
    get_document_session,
    get_persistence_service,
)
from ..utils import AttachmentValidator, ErrorCode, raise_error


logger = logging.getLogger(__name__)


def get_session_dependency() -> DocumentSession:
    """
    Dependency to get the active editing session.

    Returns:
        DocumentSession instance
    """
    return get_document_session()


def get_persistence_dependency() -> DocumentPersistenceService:
    return get_persistence_service()


def get_autosave_dependency() -> AutoSaveService:
    return get_autosave_service()


def get_attachment_validator() -> AttachmentValidator:
    """
    Dependency to get attachment validator.

    Returns:
        AttachmentValidator instance
    """
    return AttachmentValidator(max_attachment_size_mb=settings.max_attachment_size_mb)


def require_discard_confirmation(session: DocumentSession, confirm_discard: bool) -> None:
    """
    Unsaved-changes gate for replacing the active document.

    Raises:
        APIError: 409 UNSAVED_CHANGES when the session is dirty and the
            caller has not confirmed
    """
    if session.is_dirty() and not confirm_discard:
        logger.info("Replace document blocked: unsaved changes not confirmed")
        raise_error(ErrorCode.UNSAVED_CHANGES, status_code=409)


# Type aliases for common dependencies
SessionDep = Annotated[DocumentSession, Depends(get_session_dependency)]
PersistenceDep = Annotated[DocumentPersistenceService, Depends(get_persistence_dependency)]
AutoSaveDep = Annotated[AutoSaveService, Depends(get_autosave_dependency)]
AttachmentValidatorDep = Annotated[AttachmentValidator, Depends(get_attachment_validator)]
