"""
Tests for WhatsApp links, validation codes and input validators
"""
import pytest

from app.utils.whatsapp import (
    format_phone_for_whatsapp,
    generate_default_message,
    generate_whatsapp_link,
)
from app.utils.validation_codes import (
    generate_validation_code,
    hash_validation_code,
    is_valid_code_format,
    verify_validation_code,
)
from app.utils.validators import (
    sanitize_input,
    validate_cnpj,
    validate_cpf,
    validate_phone_number,
    validate_pix_key,
)


class TestWhatsApp:
    """Test click-to-chat helpers"""

    @pytest.mark.parametrize(
        "phone,expected",
        [
            ("(11) 98765-4321", "5511987654321"),
            ("+55 11 98765-4321", "5511987654321"),
            ("011987654321", "5511987654321"),
            ("", ""),
            ("abc", ""),
        ],
    )
    def test_format_phone(self, phone, expected):
        assert format_phone_for_whatsapp(phone) == expected

    def test_link_encodes_message(self):
        url = generate_whatsapp_link("+55 (11) 98765-4321", "Olá, tudo bem?")

        assert url == "https://wa.me/5511987654321?text=Ol%C3%A1%2C%20tudo%20bem%3F"

    def test_link_keeps_unreserved_characters(self):
        assert generate_whatsapp_link("5511987654321", "(ok)!") == "https://wa.me/5511987654321?text=(ok)!"

    def test_default_message(self):
        message = generate_default_message("Barbearia do João", "Corte de cabelo")

        assert message.startswith("Olá Barbearia do João,")
        assert '"Corte de cabelo"' in message
        assert "AgendoAI" in message


class TestValidationCodes:
    """Test appointment completion codes"""

    def test_generated_code_has_six_digits(self):
        for _ in range(50):
            code = generate_validation_code()
            assert is_valid_code_format(code)
            assert 100000 <= int(code) <= 999999

    def test_hash_is_deterministic(self):
        assert hash_validation_code("123456") == hash_validation_code("123456")
        assert hash_validation_code("123456") != hash_validation_code("654321")
        assert hash_validation_code("123456") != "123456"

    def test_verify(self):
        code_hash = hash_validation_code("482913")

        assert verify_validation_code("482913", code_hash)
        assert not verify_validation_code("482914", code_hash)
        assert not verify_validation_code("", code_hash)

    @pytest.mark.parametrize("code", ["12345", "1234567", "12a456", " 123456", ""])
    def test_invalid_format(self, code):
        assert not is_valid_code_format(code)


class TestValidators:
    """Test Brazilian document and contact validators"""

    @pytest.mark.parametrize("phone", ["(11) 91234-5678", "1132345678", "+55 11 91234-5678"])
    def test_valid_phone(self, phone):
        is_valid, digits, error = validate_phone_number(phone)

        assert is_valid
        assert digits.isdigit()
        assert error is None

    @pytest.mark.parametrize("phone", ["123", "11 9123x-5678", ""])
    def test_invalid_phone(self, phone):
        is_valid, digits, error = validate_phone_number(phone)

        assert not is_valid
        assert digits is None
        assert error

    def test_cpf(self):
        assert validate_cpf("529.982.247-25")
        assert not validate_cpf("529.982.247-24")
        assert not validate_cpf("111.111.111-11")

    def test_cnpj(self):
        assert validate_cnpj("11.222.333/0001-81")
        assert not validate_cnpj("11.222.333/0001-80")

    @pytest.mark.parametrize(
        "key,key_type,expected",
        [
            ("52998224725", "cpf", True),
            ("12345678900", "cpf", False),
            ("joao@agendoai.com.br", "email", True),
            ("joao@", "email", False),
            ("(11) 98765-4321", "phone", True),
            ("123e4567-e89b-12d3-a456-426614174000", "random", True),
            ("not-a-uuid", "random", False),
            ("52998224725", "iban", False),
        ],
    )
    def test_pix_key(self, key, key_type, expected):
        is_valid, error = validate_pix_key(key, key_type)

        assert is_valid is expected
        assert (error is None) is expected

    def test_sanitize_input(self):
        assert sanitize_input("  <b>Ótimo</b> atendimento<script>x</script> ") == "Ótimo atendimentox"
