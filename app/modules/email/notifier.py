"""
Avisos de vencimiento de facturas por correo.
"""
import logging
from typing import Optional

from app.modules.email.service import EmailService, email_service
from app.modules.facturas.models import Factura

logger = logging.getLogger(__name__)

DUE_TODAY_TEMPLATE = "factura_due_today.html"


class FacturaDueNotifier:
    """Envía un aviso por factura que vence hoy. `send` nunca lanza excepciones."""

    def __init__(self, service: Optional[EmailService] = None):
        self.service = service or email_service

    def send(self, address: str, factura: Factura) -> bool:
        if not address:
            logger.warning(f"Factura {factura.id} has no contact address; skipping")
            return False

        amount = f"{factura.amount:.2f}"
        context = {
            "label": factura.label,
            "amount": amount,
            "due_date": factura.due_date.strftime("%Y-%m-%d"),
        }
        text = (
            f"Hola,\n\nTe recordamos que la factura {factura.label} por un monto de "
            f"${amount} vence el día de hoy.\n\n"
            "Por favor, actualiza el estado del pago a la brevedad.\n\n"
            "Saludos,\nEl equipo de Payment Control."
        )
        return self.service.send_template_email(
            to_emails=[address],
            subject=f"Aviso de Vencimiento: Factura {factura.label}",
            template_name=DUE_TODAY_TEMPLATE,
            context=context,
            text_content=text,
        )
