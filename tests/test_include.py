import pytest

from stackup.cache import Cache
from stackup.checksums import ChecksumAlgorithm, calculate_sha256_hash
from stackup.gateway import HttpRequestError
from stackup.include import WorkflowInclude, expand_url_prefixes, is_hash_url_for_file_url
from stackup.include_types import IncludeType
from stackup.verification import ChecksumVerificationState


class FakeGateway:
    def __init__(self, pages):
        self.pages = pages
        self.requested = []

    def get_url(self, url, *headers):
        self.requested.append(url)
        if url not in self.pages:
            raise HttpRequestError(url, 404)
        return self.pages[url]


@pytest.fixture
def cache(tmp_path):
    c = Cache("stackup-include-test", tmp_path, 15)
    yield c
    c.close(True)


@pytest.mark.parametrize(
    "url, expected",
    [
        ("https://test/sha256sum", ChecksumAlgorithm.SHA256),
        ("https://test/sha256sum.txt", ChecksumAlgorithm.SHA256),
        ("https://test/sha512sum", ChecksumAlgorithm.SHA512),
        ("https://test/sha512sum.txt", ChecksumAlgorithm.SHA512),
    ],
)
def test_checksum_algorithm_from_url(url, expected):
    wi = WorkflowInclude(checksum_url=url)
    wi.update_checksum_algorithm()
    assert wi.hash_algorithm.is_valid()
    assert str(wi.hash_algorithm) == str(expected)
    assert wi.hash_algorithm.hash_length() == expected.hash_length()


@pytest.mark.parametrize(
    "expected, length",
    [(ChecksumAlgorithm.SHA256, 64), (ChecksumAlgorithm.SHA512, 128)],
)
def test_checksum_algorithm_from_length(expected, length):
    wi = WorkflowInclude(found_checksum="a" * length)
    wi.update_hash()
    wi.update_checksum_algorithm()
    assert wi.hash_algorithm.is_valid()
    assert str(wi.hash_algorithm) == str(expected)


def test_expand_url_prefixes():
    assert expand_url_prefixes("gh:org/repo/main/x.yaml") == (
        "https://raw.githubusercontent.com/org/repo/main/x.yaml"
    )
    assert expand_url_prefixes("s3:bucket/x.yaml") == "https://s3.amazonaws.com/bucket/x.yaml"
    assert expand_url_prefixes("https://example.com/x.yaml") == "https://example.com/x.yaml"


def test_is_hash_url_for_file_url():
    assert is_hash_url_for_file_url("https://example.com/a/x.yaml.sha256", "x.yaml")
    assert is_hash_url_for_file_url("https://example.com/a/x.yaml.sha512", "x.yaml")
    assert not is_hash_url_for_file_url("https://example.com/a/checksums.txt", "x.yaml")


def test_include_type():
    assert WorkflowInclude(url="https://example.com/x.yaml").include_type() is IncludeType.HTTP
    assert WorkflowInclude(file="local.yaml").include_type() is IncludeType.FILE
    assert WorkflowInclude().include_type() is IncludeType.UNKNOWN


def test_identifier_is_stable_and_distinct():
    first = WorkflowInclude(url="https://example.com/x.yaml")
    second = WorkflowInclude(url="https://example.com/x.yaml")
    third = WorkflowInclude(url="https://example.com/y.yaml")
    assert first.identifier() == second.identifier()
    assert first.identifier() != third.identifier()


def test_display_name_fallback():
    assert WorkflowInclude().display_name() == "<unknown>"


def test_update_hash_resets_state_on_change():
    wi = WorkflowInclude(validation_state=ChecksumVerificationState.VERIFIED)
    wi.contents = "hello"
    wi.update_hash()
    assert wi.hash == calculate_sha256_hash("hello")[0]
    assert wi.hash_algorithm is ChecksumAlgorithm.SHA256
    assert wi.validation_state is ChecksumVerificationState.NOT_VERIFIED


def test_initialize_expands_headers(monkeypatch):
    monkeypatch.setenv("STACKUP_TEST_TOKEN", "token")
    wi = WorkflowInclude(headers=["Authorization: Bearer $STACKUP_TEST_TOKEN"])
    wi.initialize(None, None, True, 10)
    assert wi.headers == ["Authorization: Bearer token"]
    assert wi.verify_checksum is True
    assert wi.ttl_minutes == 10
    assert wi.validation_state is ChecksumVerificationState.NOT_VERIFIED


URL = "https://example.com/a/file.yaml"
CHECKSUMS = "https://example.com/a/checksums.txt"


def test_validate_checksum_verified():
    digest = calculate_sha256_hash("hello")[0]
    gateway = FakeGateway({CHECKSUMS: f"{digest}  file.yaml\n"})
    wi = WorkflowInclude(url=URL, contents="hello")
    wi.initialize(None, gateway, False)

    assert wi.validate_checksum(["https://example.com/a/missing.txt", CHECKSUMS]) is True
    assert wi.validation_state is ChecksumVerificationState.VERIFIED
    assert wi.checksum_url == CHECKSUMS
    assert wi.found_checksum == digest
    assert wi.loaded_status_text() == "fetched, verified"


def test_validate_checksum_mismatch():
    gateway = FakeGateway({CHECKSUMS: f"{'0' * 64}  file.yaml\n"})
    wi = WorkflowInclude(url=URL, contents="hello")
    wi.initialize(None, gateway, False)

    assert wi.validate_checksum([CHECKSUMS]) is False
    assert wi.validation_state is ChecksumVerificationState.MISMATCH


def test_validate_checksum_not_found():
    gateway = FakeGateway({CHECKSUMS: f"{'0' * 64}  other.yaml\n"})
    wi = WorkflowInclude(url=URL, contents="hello")
    wi.initialize(None, gateway, False)

    assert wi.validate_checksum([CHECKSUMS]) is False
    assert wi.validation_state is ChecksumVerificationState.ERROR


def test_validate_checksum_default_urls():
    digest = calculate_sha256_hash("hello")[0]
    gateway = FakeGateway({CHECKSUMS: f"{digest}  file.yaml\n"})
    wi = WorkflowInclude(url=URL, contents="hello")
    wi.initialize(None, gateway, False)

    assert wi.validate_checksum() is True
    assert CHECKSUMS in gateway.requested


def test_validate_checksum_skipped_for_local_file(tmp_path):
    gateway = FakeGateway({})
    wi = WorkflowInclude(file=str(tmp_path / "local.yaml"), contents="x")
    wi.initialize(None, gateway, False)

    assert wi.validate_checksum([CHECKSUMS]) is True
    assert wi.validation_state is ChecksumVerificationState.NOT_VERIFIED
    assert gateway.requested == []


def test_set_contents_stores_in_cache(cache):
    wi = WorkflowInclude(url=URL)
    wi.initialize(cache, None, False)
    wi.set_contents("tasks: []", True)

    entry = cache.get(wi.identifier())
    assert entry is not None
    assert entry.value == "tasks: []"
    assert entry.hash == wi.hash
    assert entry.algorithm == "sha256"


def test_load_from_cache_round_trip(cache):
    stored = WorkflowInclude(url=URL)
    stored.initialize(cache, None, False)
    stored.set_contents("tasks: []", True)

    loaded = WorkflowInclude(url=URL)
    loaded.initialize(cache, None, False)
    assert loaded.load_from_cache(cache.get(loaded.identifier())) is True
    assert loaded.from_cache is True
    assert loaded.contents == "tasks: []"
    assert loaded.hash == stored.hash
    assert loaded.loaded_status_text() == "cached, not verified"


def test_load_from_cache_missing():
    wi = WorkflowInclude(url=URL)
    assert wi.load_from_cache(None) is False
    assert wi.from_cache is False
    assert wi.loaded_status_text() == "fetched, not verified"


def test_new_cache_entry(cache):
    wi = WorkflowInclude(url=URL, contents="body")
    wi.initialize(cache, None, False, 5)
    entry = wi.new_cache_entry()
    assert entry.value == "body"
    assert entry.hash == calculate_sha256_hash("body")[0]
    assert not entry.is_expired()


def test_new_cache_entry_without_cache():
    with pytest.raises(RuntimeError):
        WorkflowInclude(url=URL).new_cache_entry()