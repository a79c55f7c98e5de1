"""
API dependencies for dependency injection
"""

import threading
from typing import Generator, Optional

from sqlalchemy.orm import Session

from domain.models import get_db_session
from services import OrderSessionManager

_session_manager: Optional[OrderSessionManager] = None
_session_manager_lock = threading.Lock()


def get_db() -> Generator[Session, None, None]:
    """
    Database session dependency for FastAPI routes.

    Usage:
        @router.get("/example")
        def example(db: Session = Depends(get_db)):
            # Use db session here
            pass
    """
    yield from get_db_session()


def get_session_manager() -> OrderSessionManager:
    """
    The process-wide order session manager.

    Active orders live in memory, so every request must see the same
    instance. Tests override this dependency with a manager built on fakes.
    """
    global _session_manager
    if _session_manager is None:
        with _session_manager_lock:
            if _session_manager is None:
                _session_manager = OrderSessionManager.from_settings()
    return _session_manager


def reset_session_manager() -> None:
    global _session_manager
    with _session_manager_lock:
        _session_manager = None
