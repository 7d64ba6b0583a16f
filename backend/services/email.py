import logging
from dataclasses import dataclass

import httpx

from config import EMAIL_TIMEOUT_SECONDS, RESEND_API_KEY, RESEND_FROM_EMAIL, RESEND_FROM_NAME




logger = logging.getLogger(__name__)

RESEND_SEND_URL = "https://api.resend.com/emails"


@dataclass
class EmailResult:
    success: bool
    error: str | None = None


class ResendEmailClient:
    """Transactional e-mail through the Resend HTTP API.

    Never raises: every failure is reported as EmailResult(success=False, error=...).
    """

    def __init__(
        self,
        api_key: str | None = RESEND_API_KEY,
        from_email: str | None = RESEND_FROM_EMAIL,
        from_name: str | None = RESEND_FROM_NAME,
        timeout: float = EMAIL_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key
        self.from_email = from_email
        self.from_name = from_name
        self.timeout = timeout
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key and self.from_email)

    @property
    def from_address(self) -> str:
        if self.from_name:
            return f"{self.from_name} <{self.from_email}>"
        return self.from_email or ""

    async def send(self, to: str, subject: str, html: str, text: str) -> EmailResult:
        if not self.is_configured:
            return EmailResult(False, "Envio de e-mail não configurado (RESEND_API_KEY / RESEND_FROM_EMAIL).")

        payload = {
            "from": self.from_address,
            "to": [to],
            "subject": subject,
            "html": html,
            "text": text,
        }
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(RESEND_SEND_URL, headers=headers, json=payload)
        except httpx.TimeoutException:
            logger.warning("Resend timeout sending to %s", to)
            return EmailResult(False, "Tempo esgotado ao contactar o fornecedor de e-mail.")
        except httpx.HTTPError as exc:
            logger.warning("Resend request failed: %s", exc)
            return EmailResult(False, f"Falha no pedido ao fornecedor de e-mail: {exc}")

        if response.status_code >= 400:
            try:
                body = response.json()
            except ValueError:
                body = None
            detail = (body.get("message") if isinstance(body, dict) else None) or response.text
            logger.warning("Resend rejected e-mail to %s: %s %s", to, response.status_code, detail)
            return EmailResult(False, f"O fornecedor de e-mail recusou o envio ({response.status_code}): {detail}")

        return EmailResult(True)
