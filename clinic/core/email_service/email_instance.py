from clinic.core.email_service.email_service import EmailService

email_service = EmailService()


def get_email_service() -> EmailService:
    return email_service
