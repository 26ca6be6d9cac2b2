import logging
import concurrent.futures
from typing import Dict, List, Optional
import requests
from config import config
from errors import EmailDeliveryError

logger = logging.getLogger(__name__)

def send_email(to: str, subject: str, html: str, text: Optional[str] = None, name: Optional[str] = None) -> Dict:
    """Send one transactional email through Brevo"""
    recipient = {"email": to}
    if name:
        recipient["name"] = name

    payload = {
        "sender": {"name": config.BREVO_SENDER_NAME, "email": config.BREVO_SENDER_EMAIL},
        "to": [recipient],
        "subject": subject,
        "htmlContent": html,
    }
    if text:
        payload["textContent"] = text

    headers = {
        "api-key": config.BREVO_API_KEY,
        "accept": "application/json",
        "content-type": "application/json",
    }

    try:
        response = requests.post(config.BREVO_API_URL, json=payload, headers=headers, timeout=config.EMAIL_TIMEOUT)
    except requests.exceptions.RequestException as e:
        raise EmailDeliveryError(f"Email send failed for {to}: {type(e).__name__}: {e}") from e

    if response.status_code >= 400:
        body = _json_body(response)
        detail = str(body.get("message") or response.text or "no details")
        raise EmailDeliveryError(f"Brevo rejected email to {to} (HTTP {response.status_code}): {detail[:200]}")

    message_id = _json_body(response).get("messageId")

    logger.info(f"📧 Email sent to {to} (message {message_id})")
    return {"success": True, "message_id": message_id}

def _json_body(response) -> Dict:
    if not response.content:
        return {}
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}

def _send_one(recipient: Dict, subject: str, html: str, text: Optional[str]) -> Dict:
    email = recipient["email"]
    try:
        result = send_email(email, subject, html, text, name=recipient.get("name") or None)
    except EmailDeliveryError as e:
        logger.error(f"   ❌ {e.message}")
        return {"email": email, "success": False, "error": e.message}
    except Exception as e:
        logger.error(f"   ❌ Unexpected error sending to {email}: {e}", exc_info=True)
        return {"email": email, "success": False, "error": f"{type(e).__name__}: {e}"}
    return {"email": email, "success": True, "message_id": result.get("message_id")}

def send_bulk(recipients: List[Dict], subject: str, html: str, text: Optional[str] = None, max_workers: int = 10) -> List[Dict]:
    """
    Send the same email to every recipient, one request per recipient.
    Failures are reported per recipient instead of aborting the batch.
    """
    if not recipients:
        return []

    logger.info(f"📨 Sending '{subject}' to {len(recipients)} recipients")
    with concurrent.futures.ThreadPoolExecutor(max_workers=max(1, max_workers)) as executor:
        results = list(executor.map(lambda r: _send_one(r, subject, html, text), recipients))

    failed = sum(1 for r in results if not r["success"])
    logger.info(f"✅ Bulk send finished: {len(results) - failed} sent, {failed} failed")
    return results
