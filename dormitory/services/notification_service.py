"""Notification dispatcher — templated check-in / check-out messages to students."""

import logging

from dormitory.booking.results import CheckInConfirmation, CheckOutConfirmation
from dormitory.config import settings

logger = logging.getLogger(__name__)

TEMPLATES = {
    "check_in": {
        "subject": "Check-in confirmed: {building_name} Room {room_label}",
        "body": (
            "Dear {student_name},\n\n"
            "You have been checked in to your dormitory bed.\n\n"
            "Building: {building_name}\n"
            "Room: {room_label}\n"
            "Bed: {bed_label}\n"
            "Check-in date: {start_date}\n\n"
            "Welcome!\n\n"
            "Dormitory Office"
        ),
    },
    "check_out": {
        "subject": "Check-out completed: {building_name} Room {room_label}",
        "body": (
            "Dear {student_name},\n\n"
            "Your check-out from {building_name} Room {room_label} Bed {bed_label} "
            "was recorded on {end_date}.\n\n"
            "Thank you for staying with us.\n\n"
            "Dormitory Office"
        ),
    },
}

VALID_TEMPLATES = set(TEMPLATES.keys())


class NotificationDispatcher:
    """Renders and (simulates) sending notifications.

    Delivery is logged rather than sent. The booking engine never sees the
    outcome: callers dispatch after the engine has returned, and every
    failure is reported in the returned dict instead of raised.
    """

    def __init__(self, enabled: bool | None = None) -> None:
        self.enabled = settings.notifications_enabled if enabled is None else enabled

    def render(self, template: str, confirmation: CheckInConfirmation | CheckOutConfirmation) -> dict:
        tmpl = TEMPLATES[template]
        template_vars = {
            "student_name": confirmation.student_name or confirmation.student_id,
            "building_name": confirmation.building_name,
            "room_label": confirmation.room_label,
            "bed_label": confirmation.bed_label,
            "start_date": confirmation.start_date.isoformat(),
            "end_date": getattr(confirmation, "end_date", None) or "N/A",
        }
        return {
            "recipient_id": confirmation.student_id,
            "recipient_email": confirmation.student_email,
            "subject": tmpl["subject"].format(**template_vars),
            "body": tmpl["body"].format(**template_vars),
            "template_used": template,
        }

    def dispatch(self, template: str, confirmation: CheckInConfirmation | CheckOutConfirmation) -> dict:
        """Compose and send a notification for a completed check-in or check-out."""
        if template not in VALID_TEMPLATES:
            return {
                "error": f"Invalid template '{template}'. Must be one of: {', '.join(sorted(VALID_TEMPLATES))}",
                "status": "failed",
            }
        if not self.enabled:
            return {"status": "disabled"}
        if not confirmation.student_email:
            logger.info("No email on file for student %s, skipping %s notification", confirmation.student_id, template)
            return {"status": "skipped", "reason": "no email on file"}

        try:
            notification = self.render(template, confirmation)
        except Exception as e:
            logger.exception("Rendering %s notification failed", template)
            return {"error": str(e), "status": "failed"}

        logger.info(
            "Notification sent [%s] to %s <%s>: %s",
            template,
            confirmation.student_id,
            confirmation.student_email,
            notification["subject"],
        )
        return {"status": "simulated", "notification": notification}
