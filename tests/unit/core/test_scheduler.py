"""Unit tests for core/scheduler.py"""

import time
import threading
from datetime import datetime, timedelta, timezone

import pytest

from sitepub.core.errors import PublishError, PublishNotConfiguredError
from sitepub.core.htmlgen import HTMLGenerator
from sitepub.core.models import Content, Setting, Site
from sitepub.core.publisher import PublishConfig, PublishResult, Publisher
from sitepub.core.scheduler import Scheduler, build_publish_config, has_pending_content, is_publishable


NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


class FakePublisher(Publisher):
    def __init__(self, result: PublishResult = None, error: Exception = None):
        self.calls: list[tuple[PublishConfig, str]] = []
        self.result = result or PublishResult(commit_hash="abc", commit_url="https://x/y/commit/abc")
        self.error = error

    def publish(self, config: PublishConfig, slug: str) -> PublishResult:
        self.calls.append((config, slug))
        if self.error:
            raise self.error
        return self.result


def _settings(service, site: Site, **values: str) -> None:
    for ref_key, value in values.items():
        service.create_setting(Setting(site_id=site.id, ref_key=ref_key, value=value))


def _scheduled(service, site: Site) -> None:
    _settings(service, site, **{
        "ssg.scheduled.publish.enabled": "true",
        "ssg.publish.repo.url": "git@github.com:me/site.git",
    })


def _publish_content(service, site: Site, **kwargs) -> Content:
    fields = dict(site_id=site.id, heading="Fresh", body="Body", draft=False,
                  published_at=datetime.now(timezone.utc) - timedelta(minutes=5))
    fields.update(kwargs)
    return service.create_content(Content(**fields))


@pytest.fixture(name="publisher")
def publisher_fixture():
    return FakePublisher()


@pytest.fixture(name="scheduler")
def scheduler_fixture(service, workspace, publisher):
    s = Scheduler(service, HTMLGenerator(workspace), publisher, poll_seconds=0.01)
    yield s
    s.stop()


# --- pending detection ---

def _content(**kwargs) -> Content:
    fields = dict(site_id=Site(slug="s").id, draft=False, published_at=NOW - timedelta(hours=1))
    fields.update(kwargs)
    return Content(**fields)


def test_pending_when_never_published():
    assert has_pending_content([_content()], None, now=NOW)


def test_pending_only_after_watermark():
    item = _content(published_at=NOW - timedelta(hours=1))
    assert has_pending_content([item], NOW - timedelta(hours=2), now=NOW)
    assert not has_pending_content([item], NOW - timedelta(hours=1), now=NOW)


@pytest.mark.parametrize("item", [
    _content(draft=True),
    _content(published_at=None),
    _content(published_at=NOW + timedelta(minutes=1)),
])
def test_not_pending(item):
    assert not has_pending_content([item], None, now=NOW)


def test_is_publishable_undated_non_draft():
    assert is_publishable(_content(published_at=None), NOW)
    assert not is_publishable(_content(draft=True), NOW)


# --- publish config ---

def test_publish_config_https_without_token_uses_ssh():
    config = build_publish_config({"ssg.publish.repo.url": "https://x/y.git"})
    assert config.use_ssh
    assert config.branch == "gh-pages"
    assert config.commit_name == "Clio Bot"
    assert config.commit_email == "clio@localhost"


def test_publish_config_https_with_token_uses_token():
    config = build_publish_config({"ssg.publish.repo.url": "https://x/y.git", "ssg.publish.auth.token": "t"})
    assert not config.use_ssh
    assert config.auth_token == "t"


def test_publish_config_ssh_url_with_token_uses_ssh():
    config = build_publish_config({"ssg.publish.repo.url": "git@x:y.git", "ssg.publish.auth.token": "t"})
    assert config.use_ssh


def test_publish_config_requires_repo_url():
    with pytest.raises(PublishNotConfiguredError):
        build_publish_config({"ssg.publish.branch": "main"})


# --- single site cycle ---

def test_check_and_publish_publishes_and_advances_watermark(service, site, scheduler, publisher):
    _scheduled(service, site)
    _publish_content(service, site)

    assert scheduler.check_and_publish(site)
    assert [slug for _, slug in publisher.calls] == ["my-blog"]
    assert service.get_site(site.id).last_published_at is not None


def test_check_and_publish_no_changes_still_advances_watermark(service, site, workspace):
    publisher = FakePublisher(result=PublishResult(no_changes=True))
    scheduler = Scheduler(service, HTMLGenerator(workspace), publisher)
    _scheduled(service, site)
    _publish_content(service, site)

    assert scheduler.check_and_publish(site)
    assert service.get_site(site.id).last_published_at is not None


def test_check_and_publish_skips_disabled_site(service, site, scheduler, publisher):
    _settings(service, site, **{"ssg.publish.repo.url": "git@x:y.git"})
    _publish_content(service, site)
    assert not scheduler.check_and_publish(site)
    assert publisher.calls == []


def test_check_and_publish_nothing_pending(service, site, scheduler, publisher):
    _scheduled(service, site)
    _publish_content(service, site, draft=True)
    assert not scheduler.check_and_publish(site)
    assert publisher.calls == []


def test_check_and_publish_errors_are_contained(service, site, workspace):
    publisher = FakePublisher(error=PublishError("push rejected"))
    scheduler = Scheduler(service, HTMLGenerator(workspace), publisher)
    _scheduled(service, site)
    _publish_content(service, site)

    assert not scheduler.check_and_publish(site)
    assert service.get_site(site.id).last_published_at is None


def test_check_all_sites_isolates_failures(service, workspace, publisher, scheduler):
    unconfigured = service.create_site(Site(slug="broken"))
    _settings(service, unconfigured, **{"ssg.scheduled.publish.enabled": "true"})
    _publish_content(service, unconfigured)
    healthy = service.create_site(Site(slug="healthy"))
    _scheduled(service, healthy)
    _publish_content(service, healthy)

    scheduler.check_all_sites()
    assert [slug for _, slug in publisher.calls] == ["healthy"]
    assert service.get_site(unconfigured.id).last_published_at is None


# --- lifecycle ---

def test_start_is_noop_without_scheduled_sites(site, scheduler):
    assert not scheduler.start()
    assert not scheduler.running


def test_start_stop_transitions(service, site, scheduler):
    _scheduled(service, site)
    assert scheduler.start()
    assert scheduler.running
    assert not scheduler.start()
    assert scheduler.stop()
    assert not scheduler.running
    assert not scheduler.stop()


def test_external_cancel_ends_loop(service, site, scheduler):
    _scheduled(service, site)
    cancel = threading.Event()
    assert scheduler.start(cancel)
    cancel.set()
    deadline = time.monotonic() + 5
    while scheduler.running and time.monotonic() < deadline:
        time.sleep(0.01)
    assert not scheduler.running


def test_loop_ticks_at_interval(service, site, workspace, publisher, monkeypatch):
    """With a one-minute interval shrunk to zero, the loop publishes pending content on its own."""
    _scheduled(service, site)
    _publish_content(service, site)
    scheduler = Scheduler(service, HTMLGenerator(workspace), publisher, poll_seconds=0.01)
    monkeypatch.setattr(scheduler, "_interval", lambda: timedelta(0))
    try:
        assert scheduler.start()
        deadline = time.monotonic() + 5
        while not publisher.calls and time.monotonic() < deadline:
            time.sleep(0.01)
    finally:
        scheduler.stop()
    assert publisher.calls
