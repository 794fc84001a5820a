"""
Console notifier adapter - Implements Notifier protocol.

This module provides a console-based implementation of the domain's
notifier port, logging verification codes for development use.
"""

import logging

logger = logging.getLogger(__name__)


class ConsoleNotifier:
    """
    Implements Notifier protocol via console logging.

    Uses structural subtyping - no explicit inheritance from Protocol.
    Selected when no SMTP host is configured; delivery never fails.
    """

    def send_verification_code(self, email: str, code: str) -> None:
        """
        Log verification code to console (simulates email delivery).

        The code is logged at INFO level to be visible in server logs.

        Args:
            email: Recipient email address (normalized by domain layer)
            code: 6-digit verification code
        """
        logger.info("[VERIFICATION] Email: %s Code: %s", email, code)
