import pytest

from stackup.include_types import (
    IncludeType,
    InvalidIncludeTypeError,
    determine_include_type,
    parse_include_type,
)


def test_http():
    assert determine_include_type("https://example.com/a.yaml") is IncludeType.HTTP


def test_s3():
    assert determine_include_type("s3:bucket/file.yaml") is IncludeType.S3


def test_file():
    assert determine_include_type("local/file.yaml") is IncludeType.FILE


def test_empty_candidates_are_skipped():
    assert determine_include_type("", "https://example.com") is IncludeType.HTTP
    assert determine_include_type("", "") is IncludeType.UNKNOWN
    assert determine_include_type() is IncludeType.UNKNOWN


def test_first_non_empty_wins():
    assert determine_include_type("a.yaml", "https://example.com") is IncludeType.FILE


@pytest.mark.parametrize("kind", list(IncludeType))
def test_parse_round_trip(kind):
    assert parse_include_type(str(kind)) is kind
    assert kind.is_valid()


def test_parse_invalid():
    with pytest.raises(InvalidIncludeTypeError, match="ftp is not a valid IncludeType"):
        parse_include_type("ftp")