# app/service_layer/email_templates.py
from __future__ import annotations

from html import escape

from ..adapters.clients.email import EmailMessage

_STATUS_LABELS = {
    "draft": "Draft",
    "pending_payment": "Pending payment",
    "payment_verified": "Payment verified",
    "submitted": "Submitted",
    "under_review": "Under review",
    "info_requested": "More information requested",
    "conditional_approval": "Conditionally approved",
    "approved": "Approved",
    "rejected": "Not approved",
    "withdrawn": "Withdrawn",
}


def status_label(status: str) -> str:
    return _STATUS_LABELS.get(status, status.replace("_", " ").capitalize())


def _layout(title: str, body: str) -> str:
    return (
        "<div style=\"font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;\">"
        f"<h2 style=\"color: #1f2937;\">{escape(title)}</h2>"
        f"{body}"
        "<p style=\"color: #6b7280; font-size: 12px;\">Choice Properties</p>"
        "</div>"
    )


def application_confirmation_email(*, to: str, applicant_name: str | None, property_title: str | None) -> EmailMessage:
    name = escape(applicant_name or "Applicant")
    title = escape(property_title or "Your Property")
    body = (
        f"<p>Hi {name},</p>"
        f"<p>We received your application for <strong>{title}</strong>. "
        "The property owner will review it and you will be notified when its status changes.</p>"
    )
    return EmailMessage(
        to=to,
        subject="Your Application Has Been Received",
        html=_layout("Application received", body),
    )


def status_change_email(
    *,
    to: str,
    applicant_name: str | None,
    property_title: str | None,
    status: str,
    reason: str | None = None,
    rejection_reason: str | None = None,
    appealable: bool = False,
) -> EmailMessage:
    label = status_label(status)
    parts = [
        f"<p>Hi {escape(applicant_name or 'Applicant')},</p>",
        f"<p>Your application for <strong>{escape(property_title or 'your property')}</strong> "
        f"is now <strong>{escape(label)}</strong>.</p>",
    ]
    if reason:
        parts.append(f"<p>Note: {escape(reason)}</p>")
    if status == "rejected":
        if rejection_reason:
            parts.append(f"<p>Reason: {escape(rejection_reason)}</p>")
        if appealable:
            parts.append("<p>This decision can be appealed. Reply to this email to start an appeal.</p>")

    return EmailMessage(
        to=to,
        subject=f"Application update: {label}",
        html=_layout("Application status update", "".join(parts)),
    )
