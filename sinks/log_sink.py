"""
Log-only notifier, used when no outbound channel is configured.
"""

import logging
from typing import Optional

from core.interfaces import Notifier


logger = logging.getLogger(__name__)


class LogNotifier(Notifier):
    name = "LogNotifier"

    async def send(self, text: str, subject: Optional[str] = None) -> None:
        header = f"{subject}: " if subject else ""
        logger.info(f"{header}{text.strip()}")
