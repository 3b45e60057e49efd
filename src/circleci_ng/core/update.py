# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2025 The Linux Foundation

"""Check GitHub releases for a newer version of the CLI."""

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Tuple

import httpx

from circleci_ng import __version__
from circleci_ng.core.errors import APIError
from circleci_ng.core.rest import user_agent
from circleci_ng.core.settings import Settings, UpdateCheck

logger = logging.getLogger(__name__)

RELEASES_REPO = "circleci-ng/circleci-ng"
CHECK_INTERVAL = timedelta(hours=24)


def parse_version(version: str) -> Tuple[int, ...]:
    """Turn ``v1.2.3`` or ``1.2.3-rc1`` into a comparable tuple of ints."""
    match = re.match(r"^v?(\d+(?:\.\d+)*)", version.strip())
    if not match:
        raise ValueError(f"invalid version: {version}")
    return tuple(int(part) for part in match.group(1).split("."))


@dataclass
class UpdateInfo:
    current: str
    latest: str
    html_url: str = ""

    @property
    def available(self) -> bool:
        return parse_version(self.latest) > parse_version(self.current)


def latest_release(github_api: str, repo: str = RELEASES_REPO, http_client: Optional[httpx.Client] = None) -> Tuple[str, str]:
    """Return ``(tag, html_url)`` of the latest release of ``repo``."""
    url = httpx.URL(github_api).join(f"repos/{repo}/releases/latest")
    headers = {"Accept": "application/vnd.github+json", "User-Agent": user_agent()}
    if http_client is not None:
        response = http_client.get(url, headers=headers)
    else:
        with httpx.Client(timeout=10) as client:
            response = client.get(url, headers=headers)
    if response.status_code == 404:
        raise APIError(f"no releases were found for {repo}")
    if response.status_code != 200:
        raise APIError(f"failed to query releases: {response.status_code} {response.reason_phrase}")
    body = response.json()
    return body.get("tag_name", ""), body.get("html_url", "")


def check_for_updates(
    settings: Settings,
    current: str = __version__,
    http_client: Optional[httpx.Client] = None,
) -> UpdateInfo:
    tag, html_url = latest_release(settings.github_api, http_client=http_client)
    return UpdateInfo(current=current, latest=tag.lstrip("v"), html_url=html_url)


def should_check_for_updates(settings: Settings, check: UpdateCheck, now: Optional[datetime] = None) -> bool:
    """Decide whether the daily automatic update check is due."""
    if settings.skip_update_check:
        return False
    if check.last_update_check is None:
        return True
    return (now or datetime.now()) - check.last_update_check >= CHECK_INTERVAL


def automatic_update_check(settings: Settings, check: UpdateCheck) -> Optional[UpdateInfo]:
    """Run the throttled update check, returning the result when an update exists.

    Failures are logged and swallowed; an update check never fails a command.
    """
    if not should_check_for_updates(settings, check):
        return None

    try:
        info = check_for_updates(settings)
        available = info.available
    except (APIError, httpx.HTTPError, ValueError) as e:
        logger.debug(f"Update check failed: {e}")
        return None
    finally:
        check.last_update_check = datetime.now()
        check.write_to_disk()

    return info if available else None
