"""
Configuration loader for Pythia.

Reads .pythia/pythia.env (KEY=value lines, no shell execution) and
resolves every path against the project directory.
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

CONFIG_DIR = ".pythia"
CONFIG_FILE = "pythia.env"

FORBIDDEN_PATTERNS = [
    r'`',           # backticks
    r'\$\(',        # command substitution
    r'\$\{',        # variable expansion
    r';',           # command chaining
    r'&&',
    r'\|',          # pipes and OR chaining
]

KEY_PATTERN = re.compile(r'^[A-Z][A-Z0-9_]*$')

KNOWN_KEYS = {
    "DOCS_ROOT",
    "REGISTRY_PATH",
    "REPORT_PATH",
    "LOG_DIR",
    "CHANGELOG_PATH",
    "REQUIRE_APPROVAL",
    "STRICT_RULES",
    "ARCHIVE_AGE_DAYS",
}


@dataclass
class PythiaConfig:
    """Resolved settings for one project's documentation tree."""
    project_dir: Path
    docs_root: Path
    registry_path: Path
    report_path: Path
    log_dir: Path
    changelog_path: Path
    require_approval: bool = True
    strict_rules: bool = False
    archive_age_days: int = 7


def parse_env_file(path: Path) -> dict[str, str]:
    """
    Parse a KEY=value file safely.

    Raises:
        FileNotFoundError: if the file doesn't exist
        ValueError: if syntax is invalid or a forbidden pattern is found
    """
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    result = {}
    for lineno, raw in enumerate(path.read_text().splitlines(), 1):
        line = raw.strip()
        if not line or line.startswith('#'):
            continue

        key, sep, value = line.partition('=')
        if not sep:
            raise ValueError(f"{path.name} line {lineno}: Invalid syntax (no '=')")

        key = key.strip()
        value = value.strip()
        if not KEY_PATTERN.match(key):
            raise ValueError(f"{path.name} line {lineno}: Invalid key '{key}'")

        if len(value) >= 2 and value[0] == value[-1] and value[0] in ('"', "'"):
            value = value[1:-1]

        if any(re.search(p, value) for p in FORBIDDEN_PATTERNS):
            raise ValueError(f"{path.name} line {lineno}: Forbidden pattern in value for {key}")

        result[key] = value

    return result


def _parse_bool(env: dict, key: str, default: bool) -> bool:
    raw = env.get(key)
    if raw is None:
        return default
    lowered = raw.lower()
    if lowered in ("true", "yes", "1"):
        return True
    if lowered in ("false", "no", "0"):
        return False
    raise ValueError(f"{key} must be true or false, got '{raw}'")


def _parse_int(env: dict, key: str, default: int) -> int:
    raw = env.get(key)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{key} must be an integer, got '{raw}'") from None
    if value < 0:
        raise ValueError(f"{key} must not be negative, got {value}")
    return value


def _resolve(project_dir: Path, raw: str) -> Path:
    path = Path(raw).expanduser()
    return path if path.is_absolute() else project_dir / path


def load_config(project_dir: Path) -> PythiaConfig:
    """Load .pythia/pythia.env for a project, falling back to defaults."""
    project_dir = Path(project_dir)
    env_path = project_dir / CONFIG_DIR / CONFIG_FILE

    env: dict[str, str] = {}
    if env_path.exists():
        env = parse_env_file(env_path)
        for key in sorted(set(env) - KNOWN_KEYS):
            logger.warning(f"Ignoring unknown key '{key}' in {env_path}")

    docs_root = _resolve(project_dir, env.get("DOCS_ROOT", f"{CONFIG_DIR}/workflows"))

    def path_setting(key: str, default: Path) -> Path:
        return _resolve(project_dir, env[key]) if key in env else default

    return PythiaConfig(
        project_dir=project_dir,
        docs_root=docs_root,
        registry_path=path_setting("REGISTRY_PATH", docs_root / "status.md"),
        report_path=path_setting("REPORT_PATH", docs_root / "report.md"),
        log_dir=path_setting("LOG_DIR", project_dir / CONFIG_DIR / "logs" / "status-changes"),
        changelog_path=path_setting("CHANGELOG_PATH", project_dir / CONFIG_DIR / "CHANGELOG.md"),
        require_approval=_parse_bool(env, "REQUIRE_APPROVAL", True),
        strict_rules=_parse_bool(env, "STRICT_RULES", False),
        archive_age_days=_parse_int(env, "ARCHIVE_AGE_DAYS", 7),
    )


def find_project_dir(start: Path) -> Path:
    """Walk up from start to the first directory containing .pythia/.

    Returns start itself if no ancestor has one.
    """
    start = Path(start).resolve()
    for candidate in [start, *start.parents]:
        if (candidate / CONFIG_DIR).is_dir():
            return candidate
    return start
