"""Capture providers — produce encoded screenshots for the engine."""

from __future__ import annotations

import logging
from typing import Protocol, Union

from playwright.sync_api import Locator, Page

logger = logging.getLogger(__name__)

CaptureTarget = Union[str, Locator]


class CaptureProvider(Protocol):
    def capture_full_page(self) -> bytes: ...

    def capture_viewport(self) -> bytes: ...

    def capture_element(self, target: CaptureTarget) -> bytes: ...


class PageCapture:
    """Takes PNG screenshots from a Playwright page."""

    def __init__(self, page: Page):
        self.page = page

    def capture_full_page(self) -> bytes:
        logger.debug("Capturing full page screenshot")
        return self.page.screenshot(full_page=True)

    def capture_viewport(self) -> bytes:
        logger.debug("Capturing viewport screenshot")
        return self.page.screenshot()

    def capture_element(self, target: CaptureTarget) -> bytes:
        if isinstance(target, str):
            logger.debug("Capturing element screenshot: %s", target)
            return self.page.locator(target).screenshot()
        logger.debug("Capturing element screenshot")
        return target.screenshot()
