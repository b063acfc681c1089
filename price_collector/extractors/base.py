"""Helpers shared by the site and generic extractors."""
from typing import Callable, Optional, TypeVar

from price_collector.utils.logger import LayerLogger


T = TypeVar("T")


def guarded(logger: LayerLogger, source: str, fn: Callable[[], Optional[T]], **context) -> Optional[T]:
    """
    Run one extraction source; a failure means "nothing found".

    The pipeline must finish even when a single source trips over odd markup,
    so the error is logged and the cascade moves on.
    """
    try:
        return fn()
    except Exception as e:
        logger.log_error(str(e), error_type=f"{source}_failed", source=source, **context)
        return None
