# platforms.py
from __future__ import annotations

from typing import Callable, Iterable, List

from .config import RunConfig
from .model import Platform

PlatformFilter = Callable[[Platform], bool]


def _p(os_name: str, browser: str, version: str) -> Platform:
    return Platform(os=os_name, browser=browser, version=version)


# Ordered: jobs run in exactly this order after filtering
PLATFORMS: List[Platform] = [
    _p("Windows 8.1", "googlechrome", "33"),
    _p("Windows 8.1", "googlechrome", "32"),
    _p("Windows 8.1", "firefox", "27"),
    _p("Windows 8.1", "firefox", "26"),
    _p("Windows 8.1", "firefox", "20"),
    _p("Windows 8.1", "firefox", "3.0"),
    _p("Windows 8.1", "internet explorer", "11"),
    _p("Windows 8", "internet explorer", "10"),
    _p("Windows 7", "internet explorer", "9"),
    _p("Windows 7", "internet explorer", "8"),
    _p("Windows XP", "internet explorer", "7"),
    _p("Windows XP", "internet explorer", "6"),
    _p("Windows 7", "opera", "12"),
    _p("Windows 7", "opera", "11"),
    _p("OS X 10.9", "safari", "7"),
    _p("OS X 10.8", "safari", "6"),
    _p("OS X 10.6", "safari", "5"),
]

# IE document modes to exercise when the page is served with X-UA-Compatible
COMPAT_MODE_PLATFORMS: List[Platform] = [
    _p("Windows 8.1", "internet explorer", "11"),
    _p("Windows 8", "internet explorer", "10"),
    _p("Windows 7", "internet explorer", "9"),
    _p("Windows 7", "internet explorer", "8"),
]


# ---------------------------------------------------------------------
# Predicates
# ---------------------------------------------------------------------

def _minimum_versions(minimums: dict[str, float]) -> PlatformFilter:
    def keep(platform: Platform) -> bool:
        minimum = minimums.get(platform.browser)
        if minimum is None:
            return True
        return platform.version_number >= minimum
    return keep


def amd_filter() -> PlatformFilter:
    """Opera below 10 can't load the AMD test loader."""
    return _minimum_versions({"opera": 10})


def backbone_filter() -> PlatformFilter:
    return _minimum_versions({"firefox": 4, "opera": 12})


def modern_filter(mobile: bool = False) -> PlatformFilter:
    """Mobile and modern builds drop legacy browsers; mobile keeps old Safari."""
    return _minimum_versions({
        "firefox": 10,
        "internet explorer": 9,
        "opera": 12,
        "safari": 3 if mobile else 6,
    })


def apply_filters(platforms: Iterable[Platform], filters: Iterable[PlatformFilter]) -> List[Platform]:
    result = list(platforms)
    for keep in filters:
        result = [p for p in result if keep(p)]
    return result


def filters_for(config: RunConfig) -> List[PlatformFilter]:
    """Predicate passes activated by `config`, in the order they apply."""
    filters: List[PlatformFilter] = []
    if config.has_tag("amd"):
        filters.append(amd_filter())
    if config.is_backbone:
        filters.append(backbone_filter())
    if config.is_mobile or config.is_modern:
        filters.append(modern_filter(mobile=config.is_mobile))
    return filters


def select_platforms(config: RunConfig, platforms: Iterable[Platform] | None = None) -> List[Platform]:
    """
    Build the ordered platform list for a run.

    Compatibility mode replaces the whole list with the IE-only platforms and
    skips every other filter.
    """
    if config.compat_mode:
        return list(COMPAT_MODE_PLATFORMS)
    base = PLATFORMS if platforms is None else platforms
    return apply_filters(base, filters_for(config))
