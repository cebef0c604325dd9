"""
Módulo de email: transporte SMTP y avisos de vencimiento.
"""

from .service import email_service, EmailService

__all__ = [
    'email_service',
    'EmailService',
]
