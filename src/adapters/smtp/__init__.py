"""Notifier adapters - Verification code delivery."""

from .console import ConsoleNotifier
from .mailer import SmtpNotifier

__all__ = ["ConsoleNotifier", "SmtpNotifier"]
