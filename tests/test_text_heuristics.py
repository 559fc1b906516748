from __future__ import annotations

import pytest

from mailrelay.services.otp_reader import OtpReader
from mailrelay.services.service_classifier import UNKNOWN_SERVICE, detect_service
from mailrelay.services.text import html_to_text


def test_html_to_text_strips_markup_and_entities():
    assert html_to_text("<b>Hi</b>&nbsp;there") == "Hi there"


def test_html_to_text_drops_scripts_and_collapses_whitespace():
    html = "<html><head><style>p {color: red}</style></head><body><p>Your   code\n\tis</p><script>x=1</script></body></html>"
    assert html_to_text(html) == "Your code is"


@pytest.mark.parametrize("value", [None, "", "<<<>>", "<div><p>unclosed", "plain text"])
def test_html_to_text_never_raises(value):
    assert isinstance(html_to_text(value), str)


@pytest.mark.parametrize(
    "text, expected",
    [
        ("Your code: 48213", "48213"),
        ("verification code 9012", "9012"),
        ("no digits here", None),
        ("order 12", None),
        ("order 12345678901", "12345678"),
        ("Use 123 456 to sign in", "123"),
        ("Código 774411", "774411"),
        ("", None),
        (None, None),
    ],
)
def test_otp_reader_examples(text, expected):
    assert OtpReader().parse(text) == expected


def test_otp_reader_keyword_patterns_apply_when_bare_digits_do_not():
    reader = OtpReader(patterns=(r"(?<![\d-])(\d{6})(?![\d-])", r"code[:\s]*(\d{3,8})"))
    assert reader.parse("Ref 2024-01-01, code: 5521") == "5521"


@pytest.mark.parametrize(
    "text, expected",
    [
        ("Your FB login code", "Facebook"),
        ("Sign in to Outlook", "Microsoft"),
        ("hello world", UNKNOWN_SERVICE),
        ("WELCOME TO DISCORD", "Discord"),
        ("security@facebookmail.com", "Facebook"),
        ("Your Instagram code", "Instagram"),
        ("Gmail verification", "Google"),
        ("I want to sign up", UNKNOWN_SERVICE),
        ("Microsoft account: instant sign-in code", "Microsoft"),
        ("Sign in to Outlook and install the app", "Microsoft"),
        ("Amazon order metadata", "Amazon"),
        ("Meta verification", "Facebook"),
        ("noreply@accounts.google.com", "Google"),
        ("Your WA code", "WhatsApp"),
        ("", UNKNOWN_SERVICE),
    ],
)
def test_detect_service(text, expected):
    assert detect_service(text) == expected


def test_detect_service_prefers_declaration_order():
    # Mentions both; Facebook is declared before Google.
    assert detect_service("Google account linked to Facebook") == "Facebook"
