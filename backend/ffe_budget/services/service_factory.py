"""Unified service factory with singleton support.

One editing session per process: the session, its persistence service and
its auto-save service are created once and shared by every request.

Usage:
    @service_factory
    def get_document_session() -> DocumentSession:
        return DocumentSession(...)

    # Tests reset state between cases
    clear_all_service_caches()
"""

import functools
import threading
from typing import Any, Callable, TypeVar, ParamSpec

from ..config import settings
from ..store import get_snapshot_store
from ..utils import FileManager, FileValidator
from .autosave import AutoSaveService
from .document_service import DocumentSession
from .id_generator import IdGenerator
from .persistence import DocumentPersistenceService
from .scheduling import ThreadingScheduler

P = ParamSpec("P")
T = TypeVar("T")


def service_factory(func: Callable[P, T]) -> Callable[P, T]:
    """Decorator that converts a factory function into a cached singleton factory.

    For functions with arguments, caches instances by argument values.

    Args:
        func: Factory function that creates service instances

    Returns:
        Wrapped function that returns cached singleton instances
    """
    cache: dict[tuple, Any] = {}
    lock = threading.Lock()

    @functools.wraps(func)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
        key = (args, tuple(sorted(kwargs.items())))

        if key not in cache:
            with lock:
                # Double-check after acquiring lock
                if key not in cache:
                    cache[key] = func(*args, **kwargs)

        return cache[key]

    wrapper.clear_cache = lambda: cache.clear()  # type: ignore
    wrapper.cache_info = lambda: {"size": len(cache), "keys": list(cache.keys())}  # type: ignore

    return wrapper


@service_factory
def get_id_generator() -> IdGenerator:
    return IdGenerator()


@service_factory
def get_document_session() -> DocumentSession:
    return DocumentSession(id_generator=get_id_generator(), config=settings)


@service_factory
def get_file_manager() -> FileManager:
    return FileManager(
        documents_dir=settings.documents_dir_path,
        extension=settings.file_extension,
        max_file_size_bytes=settings.max_file_size_bytes,
    )


@service_factory
def get_persistence_service() -> DocumentPersistenceService:
    return DocumentPersistenceService(
        session=get_document_session(),
        file_manager=get_file_manager(),
        validator=FileValidator(max_file_size_mb=settings.max_file_size_mb),
        id_generator=get_id_generator(),
    )


@service_factory
def get_autosave_service() -> AutoSaveService:
    return AutoSaveService(
        session=get_document_session(),
        store=get_snapshot_store(),
        scheduler=ThreadingScheduler(),
        delay=settings.autosave_delay_seconds,
        slot=settings.autosave_slot,
        id_generator=get_id_generator(),
    )


def clear_all_service_caches() -> None:
    """Clear all service singleton caches.

    Useful for testing or when services need to be re-initialized.
    """
    for factory in (
        get_id_generator,
        get_document_session,
        get_file_manager,
        get_persistence_service,
        get_autosave_service,
    ):
        factory.clear_cache()  # type: ignore[attr-defined]
