"""Webhook delivery with a single plain-text fallback.

Flow for one run:

    no webhook  -> print the flat text to the run log, done
    POST card   -> accepted?  done
                -> rejected?  POST {"text": flat}, record whatever comes back

A card counts as rejected when the status is not 200, or when the response
body mentions one of the rejection signals ("required", "invalid", "error").
Teams connectors answer some malformed cards with a 200 and an error string
in the body, hence the body check. The word match is a heuristic and can
misfire on a success body that happens to contain one of the words; a false
positive costs one extra plain-text message, which is acceptable.

There is never a third POST and no backoff: a run happens once per release.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

import requests
from rich.console import Console
from rich.markup import escape

from relnotify_core.render import FlatDocument, StructuredDocument
from relnotify_core.sanitize import mask_secret

console = Console()
logger = logging.getLogger(__name__)

SUCCESS_STATUS = 200
REJECTION_SIGNALS: tuple[str, ...] = ("required", "invalid", "error")
DEFAULT_TIMEOUT = 30

# Status recorded when the request never produced an HTTP response.
NO_RESPONSE = 0

_WHITESPACE_RE = re.compile(r"\s+")
_BODY_LOG_LIMIT = 500


@dataclass(frozen=True)
class DeliveryOutcome:
    attempts: int
    final_status: int | None  # None when no webhook is configured
    delivered: bool
    used_fallback: bool = False


def normalize_body(body: str | None) -> str:
    """Strip carriage returns and collapse whitespace, for signal matching and logs."""
    if not body:
        return ""
    return _WHITESPACE_RE.sub(" ", body.replace("\r", "")).strip()


def is_rejected(status: int, body: str | None, signals: tuple[str, ...] = REJECTION_SIGNALS) -> bool:
    """Return True when a webhook response means the payload was not accepted."""
    if status != SUCCESS_STATUS:
        return True
    text = normalize_body(body).lower()
    return any(signal.lower() in text for signal in signals)


class WebhookDelivery:
    """Posts JSON payloads to one webhook URL."""

    def __init__(self, webhook_url: str, session: requests.Session | None = None, timeout: float = DEFAULT_TIMEOUT):
        self.webhook_url = webhook_url
        self.session = session or requests.Session()
        self.timeout = timeout

    def post(self, payload: dict) -> tuple[int, str]:
        """POST ``payload`` and return (status, body). Never raises.

        Transport failures (DNS, TLS, timeout, refused connection) come back
        as status 0 with the error text as body.
        """
        try:
            resp = self.session.post(self.webhook_url, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning("Webhook POST failed (%s): %s", type(e).__name__, e)
            return NO_RESPONSE, str(e)
        return resp.status_code, resp.text or ""


def _report(label: str, status: int, body: str) -> None:
    console.print(f"{label} response HTTP code: {status}")
    snippet = normalize_body(body)[:_BODY_LOG_LIMIT]
    if snippet:
        console.print(f"[dim]Response body: {escape(snippet)}[/dim]", highlight=False)


def deliver(
    structured: StructuredDocument,
    flat: FlatDocument,
    webhook_url: str | None,
    session: requests.Session | None = None,
    timeout: float = DEFAULT_TIMEOUT,
    signals: tuple[str, ...] = REJECTION_SIGNALS,
) -> DeliveryOutcome:
    """Send the card, fall back to plain text once if it is rejected."""
    if not webhook_url:
        console.print("[yellow]No webhook configured. Printing release notes to the log instead.[/yellow]")
        console.print(flat.text, markup=False, highlight=False)
        return DeliveryOutcome(attempts=0, final_status=None, delivered=True)

    client = WebhookDelivery(webhook_url, session=session, timeout=timeout)
    console.print(f"Posting card to webhook {mask_secret(webhook_url)}")

    status, body = client.post(structured.to_payload())
    _report("Card", status, body)
    if not is_rejected(status, body, signals):
        return DeliveryOutcome(attempts=1, final_status=status, delivered=True)

    console.print(f"[yellow]Card post returned {status} or was rejected. Trying plain-text fallback.[/yellow]")
    status, body = client.post(flat.to_payload())
    _report("Fallback", status, body)
    delivered = not is_rejected(status, body, signals)
    if not delivered:
        logger.warning("Fallback delivery failed with HTTP %s; release notes were not delivered.", status)
    return DeliveryOutcome(attempts=2, final_status=status, delivered=delivered, used_fallback=True)
