"""
Notification dispatcher - one entry point for every outbound email kind.

send_notification(to, kind, params) always returns a result dict and never raises,
so signup and verification can treat delivery as fire-and-forget.
"""
import logging

from waitlistpro.services import transactional_email
from waitlistpro.utils.logging import mask_email

logger = logging.getLogger(__name__)

NOTIFICATION_KINDS = ("verification", "welcome", "invite", "reward_unlock")


async def send_notification(to: str, kind: str, params: dict) -> dict:
    """
    Render and send one email.

    Args:
        to: Recipient address
        kind: verification, welcome, invite or reward_unlock
        params: Template parameters for that kind

    Returns:
        {"message_id": str|None, "status": "sent"|"error", "error": str|None}
    """
    try:
        if kind == "verification":
            result = await transactional_email.send_verification_email(
                to, params["waitlist_name"], params["waitlist_slug"], params["verify_token"],
            )
        elif kind == "welcome":
            result = await transactional_email.send_welcome_email(
                to,
                params["waitlist_name"],
                params["waitlist_slug"],
                params["position"],
                params["referral_code"],
            )
        elif kind == "invite":
            result = await transactional_email.send_invite_email(
                to, params["waitlist_name"], params.get("custom_message"),
            )
        elif kind == "reward_unlock":
            result = await transactional_email.send_reward_email(
                to,
                params["waitlist_name"],
                params["reward_title"],
                params.get("reward_description"),
                params["referral_count"],
            )
        else:
            return {"message_id": None, "status": "error", "error": f"Unknown notification kind: {kind}"}
    except Exception as e:
        logger.error(
            "Notification %s to %s failed: %s", kind, mask_email(to), str(e),
            extra={"kind": kind},
        )
        return {"message_id": None, "status": "error", "error": str(e)}

    if result.get("status") != "sent":
        logger.warning(
            "Notification %s to %s not delivered: %s", kind, mask_email(to), result.get("error"),
            extra={"kind": kind},
        )
    return result
