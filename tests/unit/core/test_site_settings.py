"""Unit tests for core/site_settings.py"""

from datetime import timedelta
from uuid import uuid4

import pytest

from sitepub.core.models import Setting
from sitepub.core.site_settings import SiteSettings, parse_duration


def test_defaults():
    cfg = SiteSettings.from_settings({})
    assert cfg.blocks_enabled and cfg.blocks_multisection
    assert cfg.blocks_max_items == 5
    assert cfg.index_max_items == 9
    assert cfg.base_path == "/"
    assert not cfg.forms_enabled
    assert not cfg.schedule_enabled
    assert cfg.schedule_interval == timedelta(hours=1)
    assert cfg.publish_branch == "gh-pages"
    assert cfg.commit_user_name == "Clio Bot"
    assert cfg.commit_user_email == "clio@localhost"


def test_from_setting_rows():
    site_id = uuid4()
    rows = [
        Setting(site_id=site_id, ref_key="ssg.blocks.maxitems", value="3"),
        Setting(site_id=site_id, ref_key="ssg.scheduled.publish.enabled", value="true"),
        Setting(site_id=site_id, ref_key="ssg.site.base_path", value="blog"),
    ]
    cfg = SiteSettings.from_settings(rows)
    assert cfg.blocks_max_items == 3
    assert cfg.schedule_enabled
    assert cfg.base_path == "/blog/"


@pytest.mark.parametrize("value,expected", [("false", False), ("no", True), ("", True), ("FALSE", True)])
def test_blocks_only_literal_false_disables(value, expected):
    assert SiteSettings.from_settings({"ssg.blocks.enabled": value}).blocks_enabled is expected


@pytest.mark.parametrize("value", ["0", "-2", "many"])
def test_bad_max_items_fall_back(value):
    assert SiteSettings.from_settings({"ssg.index.maxitems": value}).index_max_items == 9


@pytest.mark.parametrize("value,expected", [
    ("30m", timedelta(minutes=30)),
    ("1h30m", timedelta(hours=1, minutes=30)),
    ("30s", timedelta(hours=1)),
    ("soon", timedelta(hours=1)),
])
def test_schedule_interval(value, expected):
    assert SiteSettings.from_settings({"ssg.scheduled.publish.interval": value}).schedule_interval == expected


@pytest.mark.parametrize("text,expected", [
    ("90s", timedelta(seconds=90)),
    ("1.5h", timedelta(minutes=90)),
    ("2h45m30s", timedelta(hours=2, minutes=45, seconds=30)),
    ("0", timedelta(0)),
    ("-5m", timedelta(minutes=-5)),
])
def test_parse_duration(text, expected):
    assert parse_duration(text) == expected


@pytest.mark.parametrize("text", ["", "5", "m", "5d", "1h 30m"])
def test_parse_duration_invalid(text):
    with pytest.raises(ValueError):
        parse_duration(text)
