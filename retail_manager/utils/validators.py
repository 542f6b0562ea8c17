# utils/validators.py
import re

_CPF_RX = re.compile(r"^\d{3}\.\d{3}\.\d{3}-\d{2}$")
_IMEI_RX = re.compile(r"^\d{6}-\d{2}-\d{6}-\d$")
_EMAIL_RX = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


# ---- Document formats ----

def is_valid_cpf(text: str) -> bool:
    """National ID in the masked form XXX.XXX.XXX-XX."""
    return bool(text and _CPF_RX.match(str(text).strip()))


def is_valid_imei(text: str) -> bool:
    """Device identifier in the masked form NNNNNN-NN-NNNNNN-N."""
    return bool(text and _IMEI_RX.match(str(text).strip()))


def is_valid_email(text: str) -> bool:
    return bool(text and _EMAIL_RX.match(str(text).strip()))


def format_cpf(text: str) -> str:
    """
    Apply the XXX.XXX.XXX-XX mask to 11 raw digits. Anything else is returned
    trimmed and unchanged so the format check can reject it.
    """
    raw = str(text or "").strip()
    digits = re.sub(r"\D", "", raw)
    if len(digits) != 11:
        return raw
    return f"{digits[:3]}.{digits[3:6]}.{digits[6:9]}-{digits[9:]}"


# ---- Numeric parsing & validators ----

def try_parse_float(x):
    """
    Best-effort parse to float.

    Returns:
        (ok: bool, value: float|None)
    """
    try:
        return True, float(x)
    except Exception:
        return False, None


def is_non_negative_number(x) -> bool:
    """
    True iff x parses to a float and value >= 0.
    """
    ok, val = try_parse_float(x)
    return bool(ok and val is not None and val >= 0)

