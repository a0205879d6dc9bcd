"""
Outbound notifications.
"""

from unishare.notifications.email_service import EmailService

__all__ = ["EmailService"]
