"""Application-wide constants."""

APPLICATION_NAME = "stackup"
APP_REPOSITORY = "stackup/stackup"
APP_CONFIG_PATH_BASE_NAME = APPLICATION_NAME

_RAW_CONTENT_BASE = "https://raw.githubusercontent.com/" + APP_REPOSITORY + "/main"

APP_ICON_URL = _RAW_CONTENT_BASE + "/assets/stackup-app-512px.png"
APP_NEW_CONFIG_TEMPLATE_URL = _RAW_CONTENT_BASE + "/templates/init.stackup.template.yaml"

DEFAULT_CACHE_TTL_MINUTES = 15
DEFAULT_CWD_SETTING = "{{ getCwd() }}"
DEFAULT_GATEWAY_MIDDLEWARE = ("validateUrl", "verifyFileType", "validateContentType")
MAX_TASK_RUNS = 99_999_999

ALL_PLATFORMS = ("windows", "linux", "darwin")
DEFAULT_ALLOWED_DOMAINS = ("raw.githubusercontent.com", "api.github.com")
DISPLAY_URLS_REMOVABLE = ("https://", "github.com", "raw.githubusercontent.com", "s3:")

_REMOTE_INCLUDES = "gh:" + APP_REPOSITORY + "/main/templates/remote-includes/"

# A starter workflow file; the single %s placeholder receives the project type
# (php, node, python, ...).
INIT_CONFIG_FILE_CONTENTS = "\n".join(
    [
        'name: "my stack"',
        'description: "application stack"',
        'version: "1.0.0"',
        "",
        "settings:",
        "  checksum-verification: true",
        "  exit-on-checksum-mismatch: false",
        "  anonymous-statistics: false",
        '  dotenv: [".env", ".env.local"]',
        "  cache: {ttl-minutes: " + str(DEFAULT_CACHE_TTL_MINUTES) + "}",
        "  domains:",
        '    allowed: ["*.githubusercontent.com"]',
        "    hosts:",
        '      - {hostname: "*.github.com", gateway: allow,'
        ' headers: ["Accept: application/vnd.github.v3+json"]}',
        "  gateway:",
        '    content-types: {allowed: ["*"]}',
        "",
        "includes:",
        '  - url: "' + _REMOTE_INCLUDES + 'containers.yaml"',
        '  - url: "' + _REMOTE_INCLUDES + '%s.yaml"',
        "",
        "# preconditions and tasks come from the included files",
        "preconditions: ~",
        "startup: [{task: start-containers}]",
        "shutdown: [{task: stop-containers}]",
        "servers: ~",
        "scheduler: ~",
        "tasks: ~",
        "",
    ]
)