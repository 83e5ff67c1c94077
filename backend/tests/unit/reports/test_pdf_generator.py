"""
Unit Tests for the PDF report generator

The Chromium engine is exercised through a mocked Playwright; no test
launches a real browser.
"""
import asyncio
from datetime import datetime
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from app.core.exceptions import (
    RenderEngineUnavailableError,
    RenderTimeoutError,
    ReportGenerationError,
)
from app.modules.reports.formatter import build_report_content
from app.modules.reports.pdf_generator import ChromiumPrintEngine, PrintOptions, ReportPDFGenerator
from app.schemas.report import StatisticsSummary


@pytest.fixture
def stats() -> StatisticsSummary:
    return StatisticsSummary(
        total=10, women=6, men=4, unemployed=2, pensioners=1, disabled=0,
        date_from=datetime(2024, 3, 1), date_to=datetime(2024, 3, 10),
    )


def _mock_playwright(browser=None, launch_error=None):
    """Build a stand-in for async_playwright() and return (factory, driver)"""
    driver = MagicMock()
    driver.stop = AsyncMock()
    if launch_error is not None:
        driver.chromium.launch = AsyncMock(side_effect=launch_error)
    else:
        driver.chromium.launch = AsyncMock(return_value=browser)

    context_manager = MagicMock()
    context_manager.start = AsyncMock(return_value=driver)
    return MagicMock(return_value=context_manager), driver


def _mock_browser(page):
    browser = MagicMock()
    browser.new_page = AsyncMock(return_value=page)
    browser.close = AsyncMock()
    return browser


def _mock_page(pdf_bytes=b"%PDF-1.7 rendered", set_content_error=None):
    page = MagicMock()
    page.set_content = AsyncMock(side_effect=set_content_error)
    page.pdf = AsyncMock(return_value=pdf_bytes)
    page.close = AsyncMock()
    return page


class TestMarkup:
    """Test the HTML handed to the engine"""

    def test_markup_contains_all_blocks(self, stats):
        """Test title, labels, values, warning and disclaimer are present"""
        content = build_report_content(stats, stats.date_from, stats.date_to)
        markup = ReportPDFGenerator(engine_factory=MagicMock()).build_markup(content)

        assert "01.03.2024 - 10.03.2024" in markup
        assert "<th>Jami</th>" in markup
        assert "<td>10</td><td>6</td><td>4</td><td>2</td><td>1</td><td>0</td>" in markup
        assert "Diqqat!!!" in markup

    def test_markup_page_setup(self, stats):
        """Test A4 page size and the configured margin reach the stylesheet"""
        content = build_report_content(stats, stats.date_from, stats.date_to)
        generator = ReportPDFGenerator(engine_factory=MagicMock(), options=PrintOptions(margin="0.5in"))

        markup = generator.build_markup(content)

        assert "size: A4; margin: 0.5in;" in markup
        assert "color: #FF0000" in markup

    def test_markup_escapes_text(self, stats):
        """Test apostrophes in labels are escaped, not emitted raw"""
        content = build_report_content(stats, stats.date_from, stats.date_to)
        markup = ReportPDFGenerator(engine_factory=MagicMock()).build_markup(content)

        assert "Nafaqaxo&#x27;rlar" in markup


class TestRenderWithEngine:
    """Test ReportPDFGenerator against the fake engine"""

    @pytest.mark.asyncio
    async def test_render_returns_engine_bytes(self, fake_pdf_generator, print_engines, stats):
        """Test the engine output is returned as-is"""
        data = await fake_pdf_generator.render(stats, stats.date_from, stats.date_to)

        assert data.startswith(b"%PDF")
        assert print_engines[0].markup.encode("utf-8") in data

    @pytest.mark.asyncio
    async def test_fresh_engine_per_render(self, fake_pdf_generator, print_engines, stats):
        """Test each render launches and shuts down its own engine"""
        await fake_pdf_generator.render(stats, stats.date_from, stats.date_to)
        await fake_pdf_generator.render(stats, stats.date_from, stats.date_to)

        assert len(print_engines) == 2
        assert all(e.launched and e.shut_down for e in print_engines)

    @pytest.mark.asyncio
    async def test_launch_failure(self, make_pdf_generator, print_engines, stats):
        """Test launch failure surfaces as RenderEngineUnavailableError and still tears down"""
        generator = make_pdf_generator(fail_launch=True)

        with pytest.raises(RenderEngineUnavailableError):
            await generator.render(stats, stats.date_from, stats.date_to)

        assert print_engines[0].shut_down is True

    @pytest.mark.asyncio
    async def test_render_timeout(self, make_pdf_generator, print_engines, stats):
        """Test a timeout during rendering propagates and still tears down"""
        generator = make_pdf_generator(render_error=RenderTimeoutError(1000))

        with pytest.raises(RenderTimeoutError):
            await generator.render(stats, stats.date_from, stats.date_to)

        assert print_engines[0].shut_down is True

    @pytest.mark.asyncio
    async def test_empty_output_rejected(self, stats):
        """Test an engine returning nothing is a failure, not a blank report"""
        engine = MagicMock()
        engine.__aenter__ = AsyncMock(return_value=engine)
        engine.__aexit__ = AsyncMock(return_value=False)
        engine.render_to_pdf = AsyncMock(return_value=b"")
        generator = ReportPDFGenerator(engine_factory=lambda: engine)

        with pytest.raises(ReportGenerationError):
            await generator.render(stats, stats.date_from, stats.date_to)


class TestChromiumPrintEngine:
    """Test Playwright error mapping and teardown"""

    @pytest.mark.asyncio
    async def test_successful_render(self, stats):
        """Test a normal run prints with A4 and equal margins, then closes everything"""
        page = _mock_page()
        browser = _mock_browser(page)
        factory, driver = _mock_playwright(browser=browser)

        with patch("app.modules.reports.pdf_generator.async_playwright", factory):
            generator = ReportPDFGenerator(options=PrintOptions(page_format="A4", margin="0.5in"))
            data = await generator.render(stats, stats.date_from, stats.date_to)

        assert data == b"%PDF-1.7 rendered"
        kwargs = page.pdf.call_args.kwargs
        assert kwargs["format"] == "A4"
        assert set(kwargs["margin"].values()) == {"0.5in"}
        page.close.assert_awaited_once()
        browser.close.assert_awaited_once()
        driver.stop.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_launch_error_maps_to_unavailable(self):
        """Test a missing browser binary becomes RenderEngineUnavailableError"""
        factory, driver = _mock_playwright(launch_error=PlaywrightError("Executable doesn't exist"))

        with patch("app.modules.reports.pdf_generator.async_playwright", factory):
            with pytest.raises(RenderEngineUnavailableError) as exc_info:
                async with ChromiumPrintEngine(launch_timeout_ms=500):
                    pass

        assert exc_info.value.code == "RENDER_ENGINE_UNAVAILABLE"
        driver.stop.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_launch_timeout_maps_to_unavailable(self):
        """Test a browser that never starts is reported as unavailable"""
        factory, driver = _mock_playwright(launch_error=PlaywrightTimeoutError("Timeout 500ms exceeded"))

        with patch("app.modules.reports.pdf_generator.async_playwright", factory):
            with pytest.raises(RenderEngineUnavailableError):
                async with ChromiumPrintEngine(launch_timeout_ms=500):
                    pass

        driver.stop.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_settle_timeout_maps_to_render_timeout(self):
        """Test a page that never settles becomes RenderTimeoutError and is torn down"""
        page = _mock_page(set_content_error=PlaywrightTimeoutError("Timeout 1000ms exceeded"))
        browser = _mock_browser(page)
        factory, driver = _mock_playwright(browser=browser)

        with patch("app.modules.reports.pdf_generator.async_playwright", factory):
            with pytest.raises(RenderTimeoutError) as exc_info:
                async with ChromiumPrintEngine() as engine:
                    await engine.render_to_pdf("<p>x</p>", PrintOptions(render_timeout_ms=1000))

        assert exc_info.value.details["stage"] == "page settle"
        page.close.assert_awaited_once()
        browser.close.assert_awaited_once()
        driver.stop.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_capture_timeout_maps_to_render_timeout(self):
        """Test a capture that hangs past the timeout becomes RenderTimeoutError"""
        async def hanging_pdf(**kwargs):
            await asyncio.sleep(5)

        page = _mock_page()
        page.pdf = hanging_pdf
        browser = _mock_browser(page)
        factory, driver = _mock_playwright(browser=browser)

        with patch("app.modules.reports.pdf_generator.async_playwright", factory):
            with pytest.raises(RenderTimeoutError) as exc_info:
                async with ChromiumPrintEngine() as engine:
                    await engine.render_to_pdf("<p>x</p>", PrintOptions(render_timeout_ms=20))

        assert exc_info.value.details["stage"] == "capture"
        browser.close.assert_awaited_once()
        driver.stop.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_browser_crash_maps_to_unavailable(self):
        """Test a browser dying mid-render is reported as unavailable"""
        page = _mock_page(set_content_error=PlaywrightError("Target closed"))
        browser = _mock_browser(page)
        browser.close = AsyncMock(side_effect=PlaywrightError("Browser has been closed"))
        factory, driver = _mock_playwright(browser=browser)

        with patch("app.modules.reports.pdf_generator.async_playwright", factory):
            with pytest.raises(RenderEngineUnavailableError):
                async with ChromiumPrintEngine() as engine:
                    await engine.render_to_pdf("<p>x</p>", PrintOptions())

        driver.stop.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_render_before_launch(self):
        """Test rendering without launching is refused"""
        with pytest.raises(RenderEngineUnavailableError):
            await ChromiumPrintEngine().render_to_pdf("<p>x</p>", PrintOptions())
