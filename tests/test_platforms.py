from __future__ import annotations

import pytest

from sauceci.config import RunConfig
from sauceci.model import Platform
from sauceci.platforms import (
    COMPAT_MODE_PLATFORMS,
    PLATFORMS,
    amd_filter,
    apply_filters,
    backbone_filter,
    filters_for,
    modern_filter,
    select_platforms,
)

MOBILE_RUNNER = "test/index.html?build=../dist/lodash.mobile.js"
MODERN_RUNNER = "test/index.html?build=../dist/lodash.modern.min.js"


def browsers(platforms: list[Platform], name: str) -> list[str]:
    return [p.version for p in platforms if p.browser == name]


def test_default_config_uses_master_list_in_order() -> None:
    assert select_platforms(RunConfig()) == PLATFORMS


def test_compat_mode_replaces_list_and_skips_other_filters() -> None:
    config = RunConfig(compat_mode="9", tags=("amd",), runner=MOBILE_RUNNER)
    assert select_platforms(config) == COMPAT_MODE_PLATFORMS
    assert len(COMPAT_MODE_PLATFORMS) == 4
    assert {p.browser for p in COMPAT_MODE_PLATFORMS} == {"internet explorer"}


def test_amd_filter_drops_old_opera() -> None:
    keep = amd_filter()
    assert not keep(Platform("Windows XP", "opera", "9.64"))
    assert keep(Platform("Windows 7", "opera", "11"))
    assert keep(Platform("Windows 8.1", "firefox", "3.0"))


def test_amd_tag_activates_filter() -> None:
    assert len(filters_for(RunConfig(tags=("amd",)))) == 1
    assert filters_for(RunConfig(tags=("lodash",))) == []


def test_backbone_runner_drops_old_firefox_and_opera() -> None:
    selected = select_platforms(RunConfig(runner="test/backbone.html"))
    assert browsers(selected, "firefox") == ["27", "26", "20"]
    assert browsers(selected, "opera") == ["12"]
    assert browsers(selected, "internet explorer") == browsers(PLATFORMS, "internet explorer")


def test_mobile_build_keeps_old_safari() -> None:
    selected = select_platforms(RunConfig(runner=MOBILE_RUNNER))
    assert browsers(selected, "firefox") == ["27", "26", "20"]
    assert browsers(selected, "internet explorer") == ["11", "10", "9"]
    assert browsers(selected, "opera") == ["12"]
    assert browsers(selected, "safari") == ["7", "6", "5"]


def test_modern_build_drops_safari_5() -> None:
    selected = select_platforms(RunConfig(runner=MODERN_RUNNER))
    assert browsers(selected, "safari") == ["7", "6"]
    assert browsers(selected, "internet explorer") == ["11", "10", "9"]


def test_modern_filter_mobile_threshold() -> None:
    old_safari = Platform("OS X 10.4", "safari", "3")
    assert modern_filter(mobile=True)(old_safari)
    assert not modern_filter(mobile=False)(old_safari)


@pytest.mark.parametrize(
    "config",
    [
        RunConfig(),
        RunConfig(tags=("amd",)),
        RunConfig(runner="test/backbone.html"),
        RunConfig(runner=MOBILE_RUNNER),
        RunConfig(runner=MODERN_RUNNER, tags=("amd",)),
        RunConfig(runner="test/backbone.html?build=mobile", tags=("amd",)),
    ],
)
def test_filters_yield_ordered_subset_and_are_idempotent(config: RunConfig) -> None:
    selected = select_platforms(config)
    assert set(selected) <= set(PLATFORMS)
    positions = [PLATFORMS.index(p) for p in selected]
    assert positions == sorted(positions)
    assert apply_filters(selected, filters_for(config)) == selected


@pytest.mark.parametrize("keep", [amd_filter(), backbone_filter(), modern_filter(), modern_filter(mobile=True)])
def test_single_filter_idempotent(keep) -> None:
    once = apply_filters(PLATFORMS, [keep])
    assert apply_filters(once, [keep]) == once
