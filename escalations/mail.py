# escalations/mail.py

import logging

from django.conf import settings
from django.core.mail.backends.base import BaseEmailBackend

from escalations.exceptions import EscalationError
from escalations.graph import GraphClient

logger = logging.getLogger(__name__)


class GraphEmailBackend(BaseEmailBackend):
    """Email backend that delivers through the Graph ``sendMail`` endpoint of the sender mailbox."""

    def __init__(self, fail_silently=False, client=None, sender=None, **kwargs):
        super().__init__(fail_silently=fail_silently, **kwargs)
        self.client = client
        self.sender = sender or settings.SENDER_EMAIL

    def open(self):
        if self.client is None:
            self.client = GraphClient.from_settings()
            return True
        return False

    def _build_payload(self, message):
        content_type, content = "Text", message.body
        for alternative, mimetype in getattr(message, "alternatives", []):
            if mimetype == "text/html":
                content_type, content = "HTML", alternative
                break

        return {
            "message": {
                "subject": message.subject,
                "body": {"contentType": content_type, "content": content},
                "toRecipients": [{"emailAddress": {"address": a}} for a in message.to],
                "ccRecipients": [{"emailAddress": {"address": a}} for a in message.cc],
                "bccRecipients": [{"emailAddress": {"address": a}} for a in message.bcc],
            },
            "saveToSentItems": True,
        }

    def send_messages(self, email_messages):
        if not email_messages:
            return 0
        self.open()

        sent = 0
        for message in email_messages:
            if not message.recipients():
                continue
            try:
                self.client.post(f"/users/{self.sender}/sendMail", self._build_payload(message))
            except EscalationError:
                if not self.fail_silently:
                    raise
                logger.warning(f"Dropped mail '{message.subject}' after send failure")
                continue
            sent += 1
        return sent
