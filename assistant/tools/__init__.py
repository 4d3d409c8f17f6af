from .mailer import ContactMailer, ContactSubmission

__all__ = ["ContactMailer", "ContactSubmission"]
