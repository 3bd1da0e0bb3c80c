"""Tests for proxy_agent.identifiers module."""

import pytest

from proxy_agent.errors import (
    IdentifierError,
    IdentifierSyntaxError,
    UnknownIdentifierTypeError,
)
from proxy_agent.identifiers import (
    IdentifierType,
    decode_identifiers,
    parse_query,
    pretty_print_identifiers,
)


class TestParseQuery:
    """Test cases for URL query tokenization."""

    def test_repeated_keys_keep_order(self):
        """Test that repeated keys accumulate values in order."""
        assert parse_query("a=1&b=2&a=3") == {"a": ["1", "3"], "b": ["2"]}

    def test_percent_and_plus_decoding(self):
        """Test that percent escapes and plus signs are decoded."""
        assert parse_query("cidr=10.0.0.0%2F8&name=a+b") == {
            "cidr": ["10.0.0.0/8"],
            "name": ["a b"],
        }

    def test_empty_pairs_are_skipped(self):
        """Test that empty pairs between separators are ignored."""
        assert parse_query("&a=1&&b=2&") == {"a": ["1"], "b": ["2"]}

    def test_key_without_value(self):
        """Test that a key without '=' gets an empty value."""
        assert parse_query("default-route") == {"default-route": [""]}

    def test_value_keeps_extra_equals(self):
        """Test that only the first '=' splits key and value."""
        assert parse_query("host=a=b") == {"host": ["a=b"]}

    @pytest.mark.parametrize("text", ["host=%zz", "host=abc%", "host=%4", "ho%st=a"])
    def test_bad_escape(self, text):
        """Test that malformed percent escapes are syntax errors."""
        with pytest.raises(IdentifierSyntaxError) as exc_info:
            parse_query(text)

        assert "invalid URL escape" in str(exc_info.value)

    @pytest.mark.parametrize("text", ["host=%ff", "host=%C3", "%80=a"])
    def test_invalid_utf8_escape(self, text):
        """Test that escapes decoding to invalid UTF-8 are syntax errors."""
        with pytest.raises(IdentifierSyntaxError) as exc_info:
            parse_query(text)

        assert "invalid UTF-8" in str(exc_info.value)

    def test_multibyte_utf8_escape(self):
        """Test that valid multi-byte escapes decode."""
        assert parse_query("host=n%C3%B6de") == {"host": ["nöde"]}

    def test_semicolon_separator(self):
        """Test that ';' is rejected as a separator."""
        with pytest.raises(IdentifierSyntaxError) as exc_info:
            parse_query("host=a;host=b")

        assert "semicolon" in str(exc_info.value)


class TestDecodeIdentifiers:
    """Test cases for decode_identifiers."""

    def test_empty_string(self):
        """Test that an empty string decodes to no identifiers."""
        assert decode_identifiers("") == {}

    def test_repeated_hosts(self):
        """Test that each host entry contributes a value in order."""
        identifiers = decode_identifiers("host=a.example.com&host=b.example.com")

        assert identifiers == {
            IdentifierType.HOST: ("a.example.com", "b.example.com"),
        }

    def test_all_identifier_types(self, sample_identifiers):
        """Test decoding a string using every identifier type."""
        identifiers = decode_identifiers(sample_identifiers)

        assert identifiers == {
            IdentifierType.HOST: ("localhost", "node1.mydomain.com"),
            IdentifierType.CIDR: ("127.0.0.1/16",),
            IdentifierType.IPV4: ("1.2.3.4", "5.6.7.8"),
            IdentifierType.IPV6: ("::1",),
            IdentifierType.DEFAULT_ROUTE: ("true",),
        }

    def test_values_are_not_shape_checked(self):
        """Test that only the type tag is checked, not the value."""
        identifiers = decode_identifiers("ipv4=not-an-address&ipv6=:::::")

        assert identifiers[IdentifierType.IPV4] == ("not-an-address",)
        assert identifiers[IdentifierType.IPV6] == (":::::",)

    def test_unknown_type(self):
        """Test that an unknown key is reported verbatim."""
        with pytest.raises(UnknownIdentifierTypeError) as exc_info:
            decode_identifiers("foo=bar")

        assert exc_info.value.identifier_type == "foo"
        assert "foo" in str(exc_info.value)

    def test_first_unknown_type_is_reported(self):
        """Test that the first unknown key in the string is the one reported."""
        with pytest.raises(UnknownIdentifierTypeError) as exc_info:
            decode_identifiers("host=a&zone=1&rack=2")

        assert exc_info.value.identifier_type == "zone"

    def test_type_match_is_case_sensitive(self):
        """Test that type tags must match exactly."""
        with pytest.raises(UnknownIdentifierTypeError) as exc_info:
            decode_identifiers("Host=a")

        assert exc_info.value.identifier_type == "Host"

    def test_empty_key_is_unknown(self):
        """Test that a pair with an empty key is rejected."""
        with pytest.raises(UnknownIdentifierTypeError) as exc_info:
            decode_identifiers("=value")

        assert exc_info.value.identifier_type == ""

    def test_syntax_error_before_type_check(self):
        """Test that malformed query syntax fails before type checking."""
        with pytest.raises(IdentifierSyntaxError):
            decode_identifiers("foo=%zz")

    def test_invalid_utf8_is_syntax_error(self):
        """Test that undecodable bytes fail instead of decoding lossily."""
        with pytest.raises(IdentifierSyntaxError):
            decode_identifiers("host=%ff")

    def test_errors_share_base_class(self):
        """Test that both decode failures are identifier errors."""
        assert issubclass(IdentifierSyntaxError, IdentifierError)
        assert issubclass(UnknownIdentifierTypeError, IdentifierError)

    def test_decoding_is_repeatable(self, sample_identifiers):
        """Test that decoding twice yields equal, independent results."""
        first = decode_identifiers(sample_identifiers)
        second = decode_identifiers(sample_identifiers)

        assert first == second
        assert first is not second


class TestPrettyPrintIdentifiers:
    """Test cases for pretty_print_identifiers."""

    def test_decodes_escapes(self):
        """Test that escapes are decoded for display."""
        assert pretty_print_identifiers("cidr=10.0.0.0%2F8") == "cidr=10.0.0.0/8"

    def test_returns_raw_string_when_not_decodable(self):
        """Test that undecodable strings are shown unchanged."""
        assert pretty_print_identifiers("host=%zz") == "host=%zz"

    def test_returns_raw_string_for_invalid_utf8(self):
        """Test that escapes of invalid UTF-8 are shown unchanged."""
        assert pretty_print_identifiers("host=%ff") == "host=%ff"
