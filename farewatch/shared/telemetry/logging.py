"""Logging setup for the farewatch API process.

Modules log through logging.getLogger(__name__). Cache HIT/MISS and tag
invalidation lines are emitted at DEBUG; fail-open cache errors at WARNING.
"""

import logging
import sys

from farewatch.core.config import get_settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Third-party loggers that are noisy at DEBUG.
_QUIET_LOGGERS = ("redis", "asyncio", "sqlalchemy.engine")


def setup_logging() -> None:
    """Configure root logging to stdout: DEBUG when settings.debug, else INFO.

    SQL statement logging stays governed by DATABASE_ECHO, not by debug.
    """
    settings = get_settings()
    level = logging.DEBUG if settings.debug else logging.INFO
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    logging.getLogger("farewatch").setLevel(level)
