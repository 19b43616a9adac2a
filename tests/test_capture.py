"""Tests for Playwright capture providers and capture-based comparisons."""

from unittest.mock import MagicMock, Mock

import pytest

from visualcheck.capture.page_capture import PageCapture
from visualcheck.errors import VisualComparisonException


@pytest.fixture
def mock_page(black_2x2):
    page = MagicMock()
    page.screenshot.return_value = black_2x2
    page.locator.return_value.screenshot.return_value = black_2x2
    return page


class TestPageCapture:
    """Tests for screenshot capture from a page."""

    def test_full_page(self, mock_page, black_2x2):
        assert PageCapture(mock_page).capture_full_page() == black_2x2
        mock_page.screenshot.assert_called_once_with(full_page=True)

    def test_viewport(self, mock_page):
        PageCapture(mock_page).capture_viewport()
        mock_page.screenshot.assert_called_once_with()

    def test_element_by_selector(self, mock_page):
        PageCapture(mock_page).capture_element(".kpi-card")
        mock_page.locator.assert_called_once_with(".kpi-card")
        mock_page.locator.return_value.screenshot.assert_called_once()

    def test_element_by_locator(self, mock_page, black_2x2):
        locator = Mock()
        locator.screenshot.return_value = black_2x2
        assert PageCapture(mock_page).capture_element(locator) == black_2x2
        mock_page.locator.assert_not_called()


class TestCaptureComparisons:
    """Engine entry points that pull bytes from a capture provider."""

    def test_compare_full_page(self, engine, mock_page):
        result = engine.compare_full_page("dashboard", PageCapture(mock_page))
        assert result.baseline_created is True

    def test_compare_viewport(self, engine, mock_page, black_2x2):
        engine.save_baseline("viewport", black_2x2)
        assert engine.compare_viewport("viewport", PageCapture(mock_page)).passed is True

    def test_assert_page_matches_raises(self, engine, mock_page, one_white_pixel_2x2):
        engine.save_baseline("dashboard", one_white_pixel_2x2)
        with pytest.raises(VisualComparisonException):
            engine.assert_page_matches("dashboard", PageCapture(mock_page))

    def test_assert_element_matches(self, engine, mock_page, black_2x2):
        engine.save_baseline("card", black_2x2)
        result = engine.assert_element_matches("card", PageCapture(mock_page), "#card")
        assert result.passed is True

    def test_compare_elements(self, engine, mock_page):
        results = engine.compare_elements(
            PageCapture(mock_page), {"header": "header", "footer": "footer"}
        )
        assert set(results) == {"header", "footer"}
        assert mock_page.locator.call_count == 2

    def test_assert_all_elements_match_reports_failures(self, engine, mock_page, one_white_pixel_2x2):
        engine.save_baseline("header", one_white_pixel_2x2)
        with pytest.raises(VisualComparisonException) as exc_info:
            engine.assert_all_elements_match(
                PageCapture(mock_page), {"header": "header", "footer": "footer"}
            )
        assert "header: 25.00% diff" in str(exc_info.value)
        assert "footer" not in str(exc_info.value)
