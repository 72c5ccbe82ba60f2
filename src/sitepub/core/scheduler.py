"""Background scheduler: per-site pending detection, regeneration and git publish"""

import logging
import threading
from datetime import datetime, timedelta
from typing import Iterable, Mapping, Optional, Union

from sitepub.core.errors import PublishNotConfiguredError
from sitepub.core.htmlgen import HTMLGenerator, is_publishable
from sitepub.core.models import Content, Setting, Site, utcnow
from sitepub.core.publisher import PublishConfig, Publisher
from sitepub.core.site_settings import SiteSettings
from sitepub.crud.repo import Service


logger = logging.getLogger(__name__)


def has_pending_content(contents: Iterable[Content], since: Optional[datetime], now: Optional[datetime] = None) -> bool:
    """True when some non-draft item with a past publish date is newer than the watermark."""
    now = now or utcnow()
    for c in contents:
        if c.published_at is None or not is_publishable(c, now):
            continue
        if since is None or c.published_at > since:
            return True
    return False


def build_publish_config(settings: Union[Iterable[Setting], Mapping[str, str], SiteSettings]) -> PublishConfig:
    """Raises PublishNotConfiguredError when no repository URL is set."""
    cfg = settings if isinstance(settings, SiteSettings) else SiteSettings.from_settings(settings)
    if not cfg.publish_repo_url:
        raise PublishNotConfiguredError()
    token = cfg.publish_auth_token
    return PublishConfig(
        repo_url=cfg.publish_repo_url,
        branch=cfg.publish_branch,
        auth_token=token,
        commit_name=cfg.commit_user_name,
        commit_email=cfg.commit_user_email,
        use_ssh=not (token and cfg.publish_repo_url.startswith("https://")),
    )


class Scheduler:
    """Stopped -> Running -> Stopped. Start and stop are guarded by one lock."""

    def __init__(self, service: Service, html_generator: HTMLGenerator, publisher: Publisher,
                 poll_seconds: float = 1.0):
        self.service = service
        self.html_generator = html_generator
        self.publisher = publisher
        self.poll_seconds = poll_seconds
        self._lock = threading.Lock()
        self._stop = threading.Event()
        self._cancel: Optional[threading.Event] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        with self._lock:
            return self._thread is not None

    def _interval(self) -> Optional[timedelta]:
        """Interval of the first site with scheduling on, None when no site has it."""
        for site in self.service.list_sites():
            cfg = SiteSettings.from_settings(self.service.get_settings(site.id))
            if cfg.schedule_enabled:
                return cfg.schedule_interval
        return None

    def start(self, cancel: Optional[threading.Event] = None) -> bool:
        """Start the loop thread. No-op (False) when running or when no site is scheduled."""
        with self._lock:
            if self._thread is not None:
                return False
            interval = self._interval()
            if interval is None:
                logger.info("No site has scheduled publishing enabled")
                return False
            self._stop.clear()
            self._cancel = cancel
            self._thread = threading.Thread(
                target=self._run, args=(interval,), name="sitepub-scheduler", daemon=True,
            )
            self._thread.start()
        logger.info("Scheduler started with interval %s", interval)
        return True

    def stop(self) -> bool:
        """Signal the loop and wait for it. No-op (False) when not running."""
        with self._lock:
            thread = self._thread
            if thread is None:
                return False
            self._stop.set()
            self._thread = None
        if thread is not threading.current_thread():
            thread.join()
        logger.info("Scheduler stopped")
        return True

    def _should_exit(self) -> bool:
        return self._stop.is_set() or (self._cancel is not None and self._cancel.is_set())

    def _wait(self, interval: timedelta) -> bool:
        """Sleep for one interval in poll-sized steps. False when asked to exit."""
        deadline = utcnow() + interval
        while not self._should_exit():
            remaining = (deadline - utcnow()).total_seconds()
            if remaining <= 0:
                return True
            self._stop.wait(min(self.poll_seconds, remaining))
        return False

    def _run(self, interval: timedelta) -> None:
        while self._wait(interval):
            self.check_all_sites()
        with self._lock:
            if self._cancel is not None and self._cancel.is_set():
                self._thread = None
        logger.debug("Scheduler loop exited")

    def check_all_sites(self) -> None:
        """Evaluate every site in turn; one site's failure leaves the others unaffected."""
        try:
            sites = self.service.list_sites()
        except Exception:
            logger.exception("Listing sites failed")
            return
        for site in sites:
            if self._should_exit():
                return
            self.check_and_publish(site)

    def check_and_publish(self, site: Site) -> bool:
        """One cycle for one site. Returns whether a publish happened; errors are logged, not raised."""
        try:
            settings = self.service.get_settings(site.id)
            cfg = SiteSettings.from_settings(settings)
            if not cfg.schedule_enabled:
                return False

            contents = self.service.get_all_content_with_meta(site.id)
            if not has_pending_content(contents, site.last_published_at):
                logger.debug("Site %s has nothing pending", site.slug)
                return False
            logger.info("Site %s has pending content, publishing", site.slug)

            contributors = self.service.get_contributors(site.id)
            generated = self.html_generator.generate_html(
                site, contents,
                self.service.get_sections(site.id),
                self.service.get_layouts(site.id),
                settings,
                contributors=contributors,
                user_authors=self.service.build_user_authors_map(contents, contributors),
                images=self.service.get_images(site.id),
            )
            if generated.errors:
                logger.warning("Site %s generated with %d errors", site.slug, len(generated.errors))

            result = self.publisher.publish(build_publish_config(cfg), site.slug)
            if result.no_changes:
                logger.info("Site %s published with no changes", site.slug)
            else:
                logger.info("Site %s published: %s", site.slug, result.commit_url)

            site.last_published_at = utcnow()
            self.service.update_site(site)
            return True
        except Exception:
            logger.exception("Scheduled publish for site %s failed", site.slug)
            return False
