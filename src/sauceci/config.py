# config.py
from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple
from urllib.parse import parse_qs, urlsplit

from .errors import ConfigError

DEFAULT_API_URL = "https://saucelabs.com/rest/v1"
DEFAULT_RUNNER = "test/index.html"
DEFAULT_PORT = 9001
# the static server binds this host and the runner URL names it
DEFAULT_HOST = "127.0.0.1"

_BACKBONE_RE = re.compile(r"\bbackbone\b", re.IGNORECASE)
_MOBILE_RE = re.compile(r"\bmobile\b", re.IGNORECASE)
_MODERN_RE = re.compile(r"\bmodern\b", re.IGNORECASE)


def parse_custom_data(text: str | None) -> Dict[str, Any]:
    """
    Parse the `custom-data` option.

    Accepts a JSON object with or without the surrounding braces, e.g.
    `{"a": 1}` or `"a": 1, "b": "x"`.
    """
    if not text or not text.strip():
        return {}
    body = text.strip()
    if body.startswith("{"):
        body = body[1:]
    if body.endswith("}"):
        body = body[:-1]
    try:
        value = json.loads("{" + body + "}")
    except json.JSONDecodeError as e:
        raise ConfigError("custom_data", f"not a JSON object ({e.msg}): {text!r}") from e
    if not isinstance(value, dict):
        raise ConfigError("custom_data", f"custom data must be an object, got: {text!r}")
    return value


def split_tags(values: Tuple[str, ...] | list[str]) -> Tuple[str, ...]:
    """Flatten repeated and comma separated tag options, dropping blanks."""
    tags: list[str] = []
    for value in values:
        tags.extend(t.strip() for t in re.split(r",\s*", value) if t.strip())
    return tuple(tags)


@dataclass(frozen=True)
class RunConfig:
    """
    Every tunable for one invocation.

    Built once by the CLI and passed explicitly to the tunnel, the farm
    client and the platform runner.
    """
    username: str = ""
    access_key: str = ""
    api_url: str = DEFAULT_API_URL

    # job options sent to the farm
    build: str = ""
    custom_data: Dict[str, Any] = field(default_factory=dict)
    framework: str = "qunit"
    idle_timeout: int = 180
    job_name: str = "unit tests"
    max_duration: int = 360
    public: str | bool = "public"
    record_screenshots: bool = False
    record_video: bool = False
    advisor: bool = True
    tags: Tuple[str, ...] = ()
    video_upload_on_pass: bool = False

    # local page
    compat_mode: Optional[str] = None
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    runner: str = DEFAULT_RUNNER
    runner_url_override: Optional[str] = None

    # polling / retries
    status_interval: int = 5000  # milliseconds
    max_retries: int = 3

    # tunnel
    tunneled: bool = True
    tunnel_id: str = "tunnel_"
    tunnel_timeout: int = 120  # seconds
    sc_binary: str = "sc"

    def __post_init__(self) -> None:
        # the runner path is relative to the served root
        object.__setattr__(self, "runner", re.sub(r"^\W+", "", self.runner))
        if self.max_retries < 1:
            raise ConfigError("max_retries", f"must be >= 1, got {self.max_retries}")
        if self.status_interval < 0:
            raise ConfigError("status_interval", f"must be >= 0, got {self.status_interval}")

    @property
    def runner_url(self) -> str:
        if self.runner_url_override:
            return self.runner_url_override
        return f"http://{self.host}:{self.port}/{self.runner}"

    @property
    def runner_build(self) -> str:
        """The `build` query parameter of the runner page, if any."""
        query = parse_qs(urlsplit(self.runner).query)
        values = query.get("build") or [""]
        return values[0]

    @property
    def is_backbone(self) -> bool:
        return bool(_BACKBONE_RE.search(self.runner))

    @property
    def is_mobile(self) -> bool:
        return bool(_MOBILE_RE.search(self.runner_build))

    @property
    def is_modern(self) -> bool:
        return bool(_MODERN_RE.search(self.runner_build))

    def has_tag(self, tag: str) -> bool:
        return tag in self.tags

    def job_options(self) -> Dict[str, Any]:
        """
        Shared defaults for every job submission.

        `platforms` is left empty; each Job binds exactly one platform.
        """
        options: Dict[str, Any] = {
            "build": self.build,
            "custom-data": dict(self.custom_data),
            "framework": self.framework,
            "idle-timeout": self.idle_timeout,
            "max-duration": self.max_duration,
            "name": self.job_name,
            "public": self.public,
            "platforms": [],
            "record-screenshots": self.record_screenshots,
            "record-video": self.record_video,
            "sauce-advisor": self.advisor,
            "tags": list(self.tags),
            "url": self.runner_url,
            "video-upload-on-pass": self.video_upload_on_pass,
        }
        if self.public is True:
            options["public"] = "public"
        if self.tunneled:
            options["tunnel"] = f"tunnel-identifier:{self.tunnel_id}"
        return options
