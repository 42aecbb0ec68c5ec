import secrets

# Upper-case letters and digits minus the look-alikes 0/O, 1/I/L
INVITE_CODE_ALPHABET = "ABCDEFGHJKMNPQRSTUVWXYZ23456789"
INVITE_CODE_LENGTH = 8


def generate_invite_code(length: int = INVITE_CODE_LENGTH) -> str:
    return "".join(secrets.choice(INVITE_CODE_ALPHABET) for _ in range(length))


def normalize_invite_code(code: str) -> str:
    """Invite codes are case-insensitive; surrounding whitespace is ignored."""
    return (code or "").strip().upper()
