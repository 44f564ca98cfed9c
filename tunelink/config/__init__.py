"""Configuration module for tunelink.

Public API:
----------
settings: Settings instance
    Pydantic settings object with nested configuration groups

get_logger(name: str) -> Logger
    Get a module-bound logger

setup_loguru_logger(verbose: bool = False) -> None
    Configure Loguru logger for the application

resilient_operation(operation_name: str)
    Decorator for logging errors in external service calls

Usage:
------
```python
from tunelink.config import get_logger, settings

logger = get_logger(__name__)
retries = settings.consistency.write_conflict_retries
```
"""

from .logging import get_logger, resilient_operation, setup_loguru_logger
from .settings import settings

__all__ = [
    "get_logger",
    "resilient_operation",
    "settings",
    "setup_loguru_logger",
]
