"""
=============================================================================
PORTFOLIO CONTACT API - EMAIL WORDING CONFIGURATION
=============================================================================

Fixed wording for the two emails produced by every contact submission.
Addresses and credentials are deployment settings and live in
``portfolio_api.core.config``; this file only holds display names and copy.
=============================================================================
"""


class EmailConfig:
    """
    Centralized email copy for contact notifications and acknowledgements.

    Usage:
        from portfolio_api.core.email_config import email_config

        subject = email_config.ACK_SUBJECT
    """

    # =========================================================================
    # OPERATOR NOTIFICATION
    # =========================================================================

    # Display name on the notification sent to the site owner
    NOTIFICATION_FROM_NAME: str = "Portfolio Contact Form"

    # Subject prefix for notifications
    NOTIFICATION_SUBJECT_PREFIX: str = "Portfolio Contact: "

    # Placeholder when the submitter leaves the subject empty
    NO_SUBJECT: str = "No subject"

    # =========================================================================
    # SENDER ACKNOWLEDGEMENT
    # =========================================================================

    ACK_SUBJECT: str = "Thank you for contacting me!"

    # Expected response window stated in the acknowledgement
    ACK_RESPONSE_WINDOW: str = "24-48 hours during business days"

    # =========================================================================
    # TEMPLATES
    # =========================================================================

    ACCENT_COLOR: str = "#6366f1"


# Singleton instance - import this in your code
email_config = EmailConfig()
