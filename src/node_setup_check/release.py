"""Background check for a newer published release.

The check runs on its own thread while the rules are evaluated and is joined
before the report is read. Failures never abort the run; they become a
warning record instead.
"""

from __future__ import annotations

import json
import logging
import threading
import urllib.request
from typing import Callable

from node_setup_check.records import Finding, ReportAggregator, warning

logger = logging.getLogger(__name__)

ReleaseFetcher = Callable[[], str]


def fetch_latest_tag(
    url: str,
    *,
    timeout: float,
    urlopen_fn: Callable[..., object] = urllib.request.urlopen,
) -> str:
    request = urllib.request.Request(
        url,
        headers={"Accept": "application/vnd.github+json"},
    )
    with urlopen_fn(request, timeout=timeout) as response:  # type: ignore[attr-defined]
        payload = json.loads(response.read().decode("utf-8"))
    if not isinstance(payload, dict) or not isinstance(payload.get("tag_name"), str):
        raise ValueError("release payload has no tag_name")
    return payload["tag_name"]


def release_finding(latest_tag: str, current_version: str) -> Finding | None:
    latest = latest_tag.strip().removeprefix("v")
    current = current_version.strip().removeprefix("v")
    if latest and latest != current:
        return warning(
            f"latest release is v{latest}, must use latest version to prevent bugs and new logics"
        )
    return None


class ReleaseCheck:
    def __init__(
        self,
        report: ReportAggregator,
        *,
        current_version: str,
        fetch_fn: ReleaseFetcher,
    ) -> None:
        self._report = report
        self._current_version = current_version
        self._fetch_fn = fetch_fn
        self._thread = threading.Thread(
            target=self._run, name="release-check", daemon=True
        )

    def start(self) -> "ReleaseCheck":
        self._thread.start()
        return self

    def join(self) -> None:
        if self._thread.ident is not None:
            self._thread.join()

    def _run(self) -> None:
        try:
            latest = self._fetch_fn()
        except Exception as exc:  # any failure here is advisory only
            logger.debug("release check failed", exc_info=True)
            self._report.add(warning(f"failed to check latest release: {exc}"))
            return
        self._report.add(release_finding(latest, self._current_version))
