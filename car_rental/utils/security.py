from werkzeug.security import generate_password_hash, check_password_hash


def generate_hash(password: str) -> str:
    return generate_password_hash(password)


def check_hash(password: str, hashed: str) -> bool:
    if not hashed:
        return False
    try:
        return check_password_hash(hashed, password)
    except ValueError:
        # unknown hash method stored in the row
        return False


def mask_card(card_number: str) -> str:
    """Show only the last four digits of a card number."""
    digits = (card_number or "").replace("-", "").strip()
    if len(digits) < 4:
        return ""
    return "****-****-****-" + digits[-4:]
