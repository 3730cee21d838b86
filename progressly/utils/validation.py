"""
Input validation helpers shared by the public forms (affiliate applications,
newsletter, contact).
"""
from email_validator import EmailNotValidError, validate_email


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def is_valid_email(email: str) -> bool:
    """Syntax check only; no DNS lookups on the request path."""
    if not email:
        return False
    try:
        validate_email(email.strip(), check_deliverability=False)
    except EmailNotValidError:
        return False
    return True
