"""
WhatsApp click-to-chat link helpers
"""
import re
from urllib.parse import quote

WHATSAPP_BASE_URL = "https://wa.me/"

# Characters encodeURIComponent leaves untouched
_URI_COMPONENT_SAFE = "-_.!~*'()"


def format_phone_for_whatsapp(phone: str, country_code: str = "55") -> str:
    """
    Normalize a phone number to international digits

    Non-digits are removed. Numbers already starting with the country code
    are kept as they are; otherwise one leading zero is dropped and the
    country code is prefixed.
    """
    digits = re.sub(r"\D", "", phone or "")
    if not digits:
        return ""

    if digits.startswith(country_code):
        return digits

    if digits.startswith("0"):
        digits = digits[1:]

    return f"{country_code}{digits}"


def generate_whatsapp_link(phone: str, message: str = "") -> str:
    """Build https://wa.me/<digits>?text=<url-encoded message>"""
    clean_phone = re.sub(r"\D", "", phone or "")
    encoded = quote(message or "", safe=_URI_COMPONENT_SAFE)
    return f"{WHATSAPP_BASE_URL}{clean_phone}?text={encoded}"


def generate_default_message(provider_name: str, service_name: str) -> str:
    return (
        f'Olá {provider_name}, estou interessado(a) no serviço de "{service_name}" '
        f"através do AgendoAI. Poderia me fornecer mais informações?"
    )


def generate_appointment_message(counterpart_name: str, service_name: str, date: str, start_time: str) -> str:
    """Message prefilled when contacting the other party of an appointment"""
    return (
        f"Olá {counterpart_name}, sobre o agendamento de \"{service_name}\" "
        f"em {date} às {start_time} pelo AgendoAI."
    )
