"""Messaging handoff via WhatsApp deep links.

Nothing is sent from this process: a prefilled message is turned into a
``api.whatsapp.com/send`` URL and handed to a launcher (browser, ``typer.launch``).
The handoff is fire-and-forget; a failing launcher is logged and ignored.
"""

from collections.abc import Callable
from urllib.parse import quote

import structlog

from academy.config import Settings, settings


logger = structlog.get_logger()

Launcher = Callable[[str], object]


def build_whatsapp_url(phone: str, text: str, config: Settings | None = None) -> str:
    """Build the messaging deep link for a 10-digit phone."""
    config = config or settings
    return (
        f"{config.whatsapp_base_url}"
        f"?phone={config.whatsapp_country_code}{phone}"
        f"&text={quote(text, safe='')}"
    )


def activation_request_message(display_name: str, identity: str) -> str:
    return f"Lifetime activation request from {display_name} ({identity})"


def activation_accepted_message(display_name: str) -> str:
    return (
        f"Congratulations! Your subscription for {display_name} has been "
        "ACTIVATED. You now have lifetime premium access with unlimited students."
    )


def teacher_invite_message(display_name: str, link: str, code: str) -> str:
    return (
        f"You are invited to join {display_name} as a teacher.\n\n"
        f"Open: {link}\nAccess code: {code}"
    )


class MessagingHandoff:
    """Hands prefilled messages to an external messaging app.

    ``config`` supplies the messaging base URL and country code; a runtime
    fills it in with its own settings when left unset.
    """

    def __init__(
        self, launcher: Launcher | None = None, config: Settings | None = None
    ) -> None:
        self.launcher = launcher
        self.config = config

    def handoff(self, phone: str, text: str, *, event: str) -> str:
        """Build the URL and pass it to the launcher, if any.

        Args:
            phone: Recipient phone, without country code
            text: Prefilled message
            event: Log event tag (``activation_requested``, ...)

        Returns:
            The messaging URL, for surfaces that open it themselves
        """
        url = build_whatsapp_url(phone, text, self.config)
        if self.launcher is not None:
            try:
                self.launcher(url)
            except Exception as e:  # noqa: BLE001
                logger.warning("messaging_handoff_failed", handoff=event, error=str(e))
                return url
        logger.info("messaging_handoff", handoff=event, phone=phone)
        return url


def fee_receipt_message(
    student_name: str,
    amount: int,
    fees_total: int,
    fees_paid: int,
    institute_name: str,
) -> str:
    return (
        f"Dear Parent,\n\nFees payment of Rs.{amount} for {student_name} is received."
        f"\n\n*Current Status:*\nTotal: Rs.{fees_total}\nPaid: Rs.{fees_paid}"
        f"\n*Due: Rs.{fees_total - fees_paid}*\n\nRegards,\n{institute_name}"
    )


def absentees_message(day: str, absent_names: list[str], institute_name: str) -> str:
    return f"Absent students on {day}: {', '.join(absent_names) or 'None'} - {institute_name}"
