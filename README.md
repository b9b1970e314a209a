# stackup

Building blocks for development-stack workflows that pull in remote
configuration safely. It is a library: you import its modules and call
them from your own code.

## What is in the package

- `stackup.checksums`: SHA-256 and SHA-512 hashing
  (`calculate_sha256_hash`, `calculate_sha512_hash`,
  `calculate_default_hash`), the `ChecksumAlgorithm` enum, detection of the
  algorithm from a hash's length or a checksum file's URL
  (`determine_checksum_algorithm`), lookup of a file's hash in a
  `checksums.txt`-style listing (`find_filename_checksum`), comparison
  (`hashes_match`) and the candidate checksum URLs that sit beside a file
  (`get_checksum_urls`).
- `stackup.verification`: the `ChecksumVerificationState` enum
  (not verified, pending, verified, mismatch, error) and its transitions.
- `stackup.gateway`: `Gateway`, an HTTP client built on `requests` that runs
  each URL through request middleware before fetching it and each response
  through response middleware afterwards. `Gateway.initialize` takes a
  `GatewaySettings` and installs the domain allow/block check; empty allow
  and block lists are widened to `*`. Failing HTTP statuses raise
  `HttpRequestError`. When given a `Cache`, responses are cached for up to
  five minutes.
- `stackup.middleware`: the checks themselves, `validate_url` (domains),
  `verify_file_type` (file extensions) and `verify_content_type` (response
  content types), each of which raises `AccessDeniedError` to refuse;
  ready-made `VALIDATE_URL`, `VERIFY_FILE_TYPE` and `VERIFY_CONTENT_TYPE`
  objects to hand to `Gateway.add_pre_middleware` /
  `Gateway.add_post_middleware`; a `MiddlewareStore` registry; and the
  glob helpers `domain_glob_match`, `glob_match` and `matches_any_domain`.
- `stackup.cache`: `Cache`, a persistent key/value store in an SQLite file
  whose `CacheEntry` records expire at a timestamp; expired entries are
  purged on open and every minute in the background.
- `stackup.include`: `WorkflowInclude`, a workflow fragment named by a URL
  (with `gh:` and `s3:` shorthands expanded by `expand_url_prefixes`) or a
  local file, which can be stored in and loaded from the cache and checked
  against a published checksum with `validate_checksum`.
- `stackup.include_types`: the `IncludeType` enum and
  `determine_include_type`.
- `stackup.downloader`: `Downloader`, which saves a URL to a file through a
  gateway unless a non-empty file is already there; `parse_s3_url` and
  `remove_control_characters`.
- `stackup.notifications`: `SlackNotification` (incoming webhook) and
  `TelegramNotification` (bot API).
- `stackup.init_config`: `create_new_config_file(gateway)` writes a starter
  `stackup.yaml` in the current directory from the remote template,
  filling in the project type (php, node or python) from the files present.
- `stackup.workflow_state`: `WorkflowState`, which tracks the running task
  and the tasks it interrupted.
- `stackup.debug`, `stackup.messages`, `stackup.consts`: debug output that
  prints only when enabled, user-facing message texts, and constants.

## Installation

```
pip install .
```

## Examples

Hash a document and check it against a published checksum:

```python
from stackup.checksums import calculate_sha256_hash, find_filename_checksum, hashes_match

digest, algorithm = calculate_sha256_hash("name: my stack\n")
listing = f"{digest}  stack.yaml\n"
entry = find_filename_checksum("stack.yaml", listing)
assert hashes_match(digest, entry.hash)
```

Allow only some domains:

```python
from stackup.gateway import Gateway, GatewaySettings

gateway = Gateway(None)
gateway.initialize(GatewaySettings(allowed_domains=["*.example.com"]), None, None)

assert gateway.allowed("https://www.example.com/config.yaml")
assert not gateway.allowed("https://elsewhere.test/config.yaml")
```

`initialize` installs only the domain check; to also check file extensions
or content types, add them:

```python
from stackup.middleware import VERIFY_CONTENT_TYPE, VERIFY_FILE_TYPE

gateway.add_pre_middleware(VERIFY_FILE_TYPE)
gateway.add_post_middleware(VERIFY_CONTENT_TYPE)
```

Cache values with an expiry time:

```python
from stackup.cache import Cache, expires_at

cache = Cache("my-app", "/tmp", 15)
cache.set("greeting", cache.create_entry("hello", expires_at(5), "", "", None), 5)
assert cache.has("greeting")
cache.close(True)
```

## What the package does not do

- There is no command-line program: nothing here reads a workflow file,
  runs tasks, preconditions or servers, or schedules anything.
- No script evaluation: a gateway or include given a `js_engine` object
  uses it for header strings, but the package provides no such engine.
- S3 URLs can be parsed, but there is no S3 client to fetch objects.
- No desktop notifications; only Slack and Telegram.

## Running the tests

```
pip install ".[test]"
pytest
```