"""
Clinic Email Service - SendGrid Integration
Tells therapists when a parent cancels or moves a session
"""

import html
import logging
from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail

from clinic.core.config import SENDGRID_API_KEY, FROM_EMAIL, NOTIFY_PROVIDER

logger = logging.getLogger(__name__)


class EmailService:
    def __init__(self, api_key: str = SENDGRID_API_KEY, from_email: str = FROM_EMAIL, provider: str = NOTIFY_PROVIDER):
        self.api_key = api_key
        self.from_email = from_email
        self.provider = provider

        if self.provider == 'email' and self.api_key:
            self.client = SendGridAPIClient(self.api_key)
        else:
            self.client = None

    def _send(self, to_email: str, subject: str, html_content: str) -> bool:
        try:
            message = Mail(
                from_email=self.from_email,
                to_emails=to_email,
                subject=subject,
                html_content=html_content
            )

            response = self.client.send(message)
            logger.info(f"Email sent to {to_email}: {response.status_code}")
            return response.status_code == 202

        except Exception as e:
            # Delivery failures are logged, never raised
            logger.error(f"Email error: {str(e)}")
            return False

    def send_cancellation_notice(self, therapist_email: str, session_data: dict) -> bool:
        """Tell the therapist a parent cancelled"""
        if not self.client:
            logger.info(f"[MOCK EMAIL] Cancellation notice to {therapist_email}")
            return False

        subject = f"Session cancelled - {session_data['patient_name']}"

        patient_name = html.escape(session_data['patient_name'])
        reason = html.escape(session_data.get('reason') or '')
        html_content = f"""
        <!DOCTYPE html>
        <html>
        <head>
            <style>
                body {{ font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px; }}
                .notice {{ background: #fef2f2; padding: 20px; border-radius: 8px; border: 2px solid #fca5a5; }}
            </style>
        </head>
        <body>
            <div class="notice">
                <h2>Session Cancelled</h2>
                <p>The session with <strong>{patient_name}</strong> scheduled for
                <strong>{session_data['session_time']}</strong> has been cancelled by the parent.</p>
                {f"<p><strong>Reason:</strong> {reason}</p>" if reason else ""}
                <p>The slot is free again in your calendar.</p>
            </div>
        </body>
        </html>
        """
        return self._send(therapist_email, subject, html_content)

    def send_reschedule_notice(self, therapist_email: str, session_data: dict) -> bool:
        """Tell the therapist a parent moved a session"""
        if not self.client:
            logger.info(f"[MOCK EMAIL] Reschedule notice to {therapist_email}")
            return False

        subject = f"Session rescheduled - {session_data['patient_name']}"
        patient_name = html.escape(session_data['patient_name'])

        html_content = f"""
        <!DOCTYPE html>
        <html>
        <head>
            <style>
                body {{ font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px; }}
                .reminder {{ background: #dbeafe; padding: 20px; border-radius: 8px; }}
                .time {{ font-size: 20px; font-weight: bold; color: #1e40af; margin: 10px 0; }}
            </style>
        </head>
        <body>
            <div class="reminder">
                <h2>Session Rescheduled</h2>
                <p>Your session with <strong>{patient_name}</strong> has moved.</p>
                <p>From: {session_data['old_time']}</p>
                <div class="time">To: {session_data['new_time']}</div>
            </div>
        </body>
        </html>
        """
        return self._send(therapist_email, subject, html_content)
