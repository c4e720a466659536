"""
Transactional email service - SendGrid-based emails for the signup lifecycle.

verification -> welcome (with referral link) -> reward unlocked -> launch invite.
Every sender returns {"message_id": str|None, "status": "sent"|"error", "error": str|None}
and never raises; callers decide whether a failure matters.
"""
import asyncio
import logging
from html import escape
from typing import Optional

from waitlistpro.config import get_settings
from waitlistpro.utils.logging import mask_email

logger = logging.getLogger(__name__)

_FOOTER = """
      <div style="border-top: 1px solid #e5e7eb; margin: 32px 0 16px;"></div>
      <p style="color: #bbb; font-size: 11px; text-align: center;">Powered by WaitlistPro</p>
"""


def _app_url() -> str:
    return get_settings().app_base_url.rstrip("/")


def _wrap(title: str, color: str, body: str) -> str:
    return f"""
    <div style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; max-width: 600px; margin: 0 auto; padding: 40px 20px;">
      <div style="background: {color}; padding: 32px; border-radius: 12px 12px 0 0; text-align: center;">
        <h1 style="color: white; margin: 0; font-size: 26px;">{title}</h1>
      </div>
      <div style="background: #ffffff; padding: 32px; border: 1px solid #e5e7eb; border-top: none; border-radius: 0 0 12px 12px;">
        {body}
      </div>
      {_FOOTER}
    </div>
    """


def _button(url: str, label: str, color: str = "#3B82F6") -> str:
    return (
        f'<div style="text-align: center; margin: 32px 0;">'
        f'<a href="{url}" style="background: {color}; color: white; padding: 14px 32px; '
        f'text-decoration: none; border-radius: 8px; font-weight: 600; font-size: 16px; '
        f'display: inline-block;">{label}</a></div>'
    )


async def _send_transactional(
    to_email: str,
    subject: str,
    html_content: str,
    text_content: str,
    category: Optional[str] = None,
) -> dict:
    """
    Deliver one message through SendGrid. The SDK call is blocking, so it runs in
    the default executor. `category` tags the message in SendGrid's statistics.
    """
    settings = get_settings()
    if not settings.sendgrid_api_key:
        logger.error("Cannot email %s: SENDGRID_API_KEY is not set", mask_email(to_email))
        return {"message_id": None, "status": "error", "error": "SendGrid not configured"}

    try:
        from sendgrid import SendGridAPIClient
        from sendgrid.helpers.mail import Category, Mail

        message = Mail(
            from_email=(settings.sendgrid_from_email, settings.sendgrid_from_name),
            to_emails=to_email,
            subject=subject,
            plain_text_content=text_content,
            html_content=html_content,
        )
        if category:
            message.category = Category(category)

        client = SendGridAPIClient(api_key=settings.sendgrid_api_key)
        response = await asyncio.get_running_loop().run_in_executor(None, client.send, message)
    except Exception as e:
        logger.error(
            "Email to %s failed: %s", mask_email(to_email), str(e),
            extra={"kind": category},
        )
        return {"message_id": None, "status": "error", "error": str(e)}

    logger.info(
        "Email sent to %s: %s", mask_email(to_email), subject[:40],
        extra={"kind": category},
    )
    return {
        "message_id": response.headers.get("X-Message-Id") or None,
        "status": "sent",
        "error": None,
    }


async def send_verification_email(
    email: str, waitlist_name: str, waitlist_slug: str, verify_token: str,
) -> dict:
    """Send the verify-your-spot link right after signup."""
    verify_url = f"{_app_url()}/w/{waitlist_slug}/verify?token={verify_token}"
    name = escape(waitlist_name)

    html = _wrap(
        "You're almost in!",
        "#3B82F6",
        f"""
        <p style="font-size: 16px;">Thanks for joining the <strong>{name}</strong> waitlist!</p>
        <p style="font-size: 16px;">Click the button below to verify your email and secure your spot:</p>
        {_button(verify_url, "Verify My Email")}
        <p style="font-size: 14px; color: #6b7280;">
          If you didn't sign up for this waitlist, you can safely ignore this email.
        </p>
        """,
    )
    text = (
        f"Thanks for joining the {waitlist_name} waitlist!\n\n"
        f"Verify your email to secure your spot:\n\n{verify_url}\n\n"
        "If you didn't sign up for this waitlist, you can safely ignore this email.\n\n"
        "-- WaitlistPro"
    )

    return await _send_transactional(
        email, f"Verify your spot on {waitlist_name}", html, text, category="verification",
    )


async def send_welcome_email(
    email: str, waitlist_name: str, waitlist_slug: str, position: int, referral_code: str,
) -> dict:
    """Send position and referral link after verification."""
    referral_url = f"{_app_url()}/w/{waitlist_slug}?ref={referral_code}"
    position_url = f"{_app_url()}/w/{waitlist_slug}/{referral_code}"
    name = escape(waitlist_name)

    html = _wrap(
        f"You're in! Position #{position}",
        "#10B981",
        f"""
        <p style="font-size: 16px;">Welcome to the <strong>{name}</strong> waitlist! Your email is now verified.</p>
        <div style="background: #f3f4f6; padding: 24px; border-radius: 8px; margin: 24px 0;">
          <h3 style="margin: 0 0 12px 0; font-size: 16px;">Want to move up the line?</h3>
          <p style="margin: 0 0 16px 0; font-size: 14px; color: #4b5563;">
            Share your unique referral link. For every friend who joins, you'll move up in line!
          </p>
          <div style="background: white; padding: 12px; border-radius: 6px; border: 1px solid #e5e7eb; word-break: break-all; font-family: monospace; font-size: 13px;">
            {referral_url}
          </div>
        </div>
        {_button(position_url, "Check Your Position")}
        """,
    )
    text = (
        f"You're #{position} on {waitlist_name}!\n\n"
        "Share your referral link to move up the line:\n"
        f"{referral_url}\n\n"
        f"Check your position: {position_url}\n\n"
        "-- WaitlistPro"
    )

    return await _send_transactional(
        email, f"You're #{position} on {waitlist_name}!", html, text, category="welcome",
    )


async def send_invite_email(
    email: str, waitlist_name: str, custom_message: Optional[str] = None,
) -> dict:
    """Launch-day invitation."""
    name = escape(waitlist_name)
    custom_html = (
        f'<p style="font-size: 16px;">{escape(custom_message)}</p>' if custom_message else ""
    )

    html = _wrap(
        "The wait is over!",
        "#8B5CF6",
        f"""
        <p style="font-size: 16px;">
          Great news! <strong>{name}</strong> is now live and you're one of the first to get access.
        </p>
        {custom_html}
        <p style="font-size: 16px;">
          Thanks for being part of our early community. We can't wait to see what you do with it!
        </p>
        """,
    )
    text = (
        f"Great news! {waitlist_name} is now live and you're one of the first to get access.\n\n"
        + (f"{custom_message}\n\n" if custom_message else "")
        + "Thanks for being part of our early community.\n\n-- WaitlistPro"
    )

    return await _send_transactional(
        email, f"You're invited! {waitlist_name} is live!", html, text, category="invite",
    )


async def send_reward_email(
    email: str,
    waitlist_name: str,
    reward_title: str,
    reward_description: Optional[str],
    referral_count: int,
) -> dict:
    """Tell a referrer they crossed a reward threshold."""
    html = _wrap(
        "Reward Unlocked!",
        "#F59E0B",
        f"""
        <div style="text-align: center; margin-bottom: 24px;">
          <div style="display: inline-block; background: #FEF3C7; padding: 16px 32px; border-radius: 8px; border: 2px solid #F59E0B;">
            <h2 style="margin: 0; color: #92400E; font-size: 20px;">{escape(reward_title)}</h2>
          </div>
        </div>
        <p style="font-size: 16px; text-align: center;">
          You referred <strong>{referral_count} friends</strong> to {escape(waitlist_name)} and unlocked this reward:
        </p>
        <p style="font-size: 16px; color: #4b5563; text-align: center;">{escape(reward_description or "")}</p>
        <p style="font-size: 14px; color: #6b7280; text-align: center;">Keep sharing to unlock even more rewards!</p>
        """,
    )
    text = (
        f"Reward unlocked: {reward_title}\n\n"
        f"You referred {referral_count} friends to {waitlist_name}.\n"
        + (f"{reward_description}\n" if reward_description else "")
        + "\nKeep sharing to unlock even more rewards!\n\n-- WaitlistPro"
    )

    return await _send_transactional(
        email, f"You unlocked: {reward_title}!", html, text, category="reward_unlock",
    )
