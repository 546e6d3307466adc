from docbridge.config.settings import ExtractionSettings
from docbridge.extractor.readability import assess_readability, is_readable


def test_prose_is_readable(prose):
    assert is_readable(prose)


def test_empty_and_none_are_not_readable():
    assert not is_readable("")
    assert not is_readable(None)


def test_text_under_minimum_length_is_rejected():
    report = assess_readability("Short but perfectly normal sentence.")
    assert not report.readable
    assert report.failed_checks == ("too_short",)


def test_raw_pdf_bytes_are_rejected_by_binary_signature(prose):
    raw = "%PDF-1.7\n" + prose
    report = assess_readability(raw)
    assert not report.readable
    assert report.has_binary_signature
    assert "binary_signature" in report.failed_checks


def test_zip_magic_is_a_binary_signature(prose):
    assert not is_readable("PK\x03\x04" + prose)


def test_control_character_is_a_binary_signature(prose):
    assert not is_readable(prose[:60] + "\x01" + prose[60:])


def test_tab_newline_and_carriage_return_are_allowed(prose):
    assert is_readable(prose.replace(". ", ".\r\n\t"))


def test_digits_fail_letter_ratio_only():
    text = "12 34 56 78 90 " * 10
    report = assess_readability(text)
    assert report.failed_checks == ("letter_ratio",)


def test_missing_spaces_fail_space_ratio_only():
    report = assess_readability("abcdefghij" * 10)
    assert report.failed_checks == ("space_ratio",)


def test_replacement_characters_fail_their_own_check(prose):
    text = prose + "\ufffd" * 40
    report = assess_readability(text)
    assert report.replacement_ratio >= 0.10
    assert report.failed_checks == ("replacement_ratio",)


def test_checks_are_reported_independently():
    report = assess_readability("1234567890" * 10)
    assert set(report.failed_checks) == {"letter_ratio", "space_ratio"}


def test_only_leading_sample_is_inspected(prose):
    text = (prose + " ") * 10  # well over 1000 chars
    assert is_readable(text + "%PDF")
    assert not is_readable("%PDF" + text)


def test_thresholds_come_from_settings(prose):
    strict = ExtractionSettings.model_construct(min_letter_ratio=0.95)
    assert is_readable(prose)
    assert not is_readable(prose, strict)
