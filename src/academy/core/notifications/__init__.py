"""Outbound notifications handed to external messaging apps."""

from academy.core.notifications.whatsapp import (
    MessagingHandoff,
    absentees_message,
    activation_accepted_message,
    activation_request_message,
    build_whatsapp_url,
    fee_receipt_message,
    teacher_invite_message,
)


__all__ = [
    "MessagingHandoff",
    "absentees_message",
    "activation_accepted_message",
    "activation_request_message",
    "build_whatsapp_url",
    "fee_receipt_message",
    "teacher_invite_message",
]
