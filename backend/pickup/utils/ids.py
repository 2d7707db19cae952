def parse_identifier(raw: str | int) -> int:
    """Decode an opaque public identifier ("123") into its storage key."""
    text = str(raw).strip()
    if not (text.isascii() and text.isdigit()):
        raise ValueError("identifier must be a decimal string")
    value = int(text)
    if value < 1:
        raise ValueError("identifier must be positive")
    return value


def format_identifier(value: int) -> str:
    return str(value)
