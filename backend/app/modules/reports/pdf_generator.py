"""
PDF Generator for the patient summary report.

Renders the shared ReportContent as HTML and prints it to a fixed A4 page
with headless Chromium (Playwright). Each report gets its own browser
process, which is torn down on every exit path.
"""

import asyncio
import html
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from playwright.async_api import async_playwright
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from app.core.config import settings
from app.core.exceptions import RenderEngineUnavailableError, RenderTimeoutError, ReportGenerationError
from app.core.logging_config import logger
from app.modules.reports.formatter import ATTENTION_COLOR, ReportContent, build_report_content
from app.schemas.report import StatisticsSummary


@dataclass(frozen=True)
class PrintOptions:
    page_format: str = "A4"
    margin: str = "0.5in"
    render_timeout_ms: int = 30000

    @classmethod
    def from_settings(cls) -> "PrintOptions":
        return cls(
            page_format=settings.PRINT_PAGE_FORMAT,
            margin=settings.PRINT_PAGE_MARGIN,
            render_timeout_ms=settings.PRINT_RENDER_TIMEOUT_MS,
        )


class PrintEngine(ABC):
    """
    External rendering engine: launch, render, shutdown.

    Use as an async context manager so shutdown runs even when launch or
    rendering fails.
    """

    @abstractmethod
    async def launch(self) -> None:
        ...

    @abstractmethod
    async def render_to_pdf(self, markup: str, options: PrintOptions) -> bytes:
        ...

    @abstractmethod
    async def shutdown(self) -> None:
        ...

    async def __aenter__(self) -> "PrintEngine":
        try:
            await self.launch()
        except BaseException:
            await self.shutdown()
            raise
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.shutdown()


class ChromiumPrintEngine(PrintEngine):
    """Headless Chromium driven through Playwright"""

    def __init__(self, launch_timeout_ms: Optional[int] = None):
        self.launch_timeout_ms = launch_timeout_ms or settings.PRINT_ENGINE_LAUNCH_TIMEOUT_MS
        self._playwright = None
        self._browser = None

    async def launch(self) -> None:
        try:
            self._playwright = await async_playwright().start()
            self._browser = await self._playwright.chromium.launch(
                headless=True,
                timeout=self.launch_timeout_ms,
            )
        except PlaywrightTimeoutError as e:
            raise RenderEngineUnavailableError(
                f"browser did not start within {self.launch_timeout_ms}ms"
            ) from e
        except (PlaywrightError, OSError) as e:
            raise RenderEngineUnavailableError(str(e)) from e

        logger.info("[PDFGenerator] Chromium launched")

    async def render_to_pdf(self, markup: str, options: PrintOptions) -> bytes:
        if self._browser is None:
            raise RenderEngineUnavailableError("engine was not launched")

        try:
            page = await self._browser.new_page()
        except PlaywrightError as e:
            raise RenderEngineUnavailableError(f"could not open page: {e}") from e

        try:
            await page.set_content(markup, wait_until="networkidle", timeout=options.render_timeout_ms)
            return await asyncio.wait_for(
                page.pdf(
                    format=options.page_format,
                    margin={
                        "top": options.margin,
                        "right": options.margin,
                        "bottom": options.margin,
                        "left": options.margin,
                    },
                    print_background=True,
                ),
                timeout=options.render_timeout_ms / 1000,
            )
        except PlaywrightTimeoutError as e:
            raise RenderTimeoutError(options.render_timeout_ms, stage="page settle") from e
        except asyncio.TimeoutError as e:
            raise RenderTimeoutError(options.render_timeout_ms, stage="capture") from e
        except PlaywrightError as e:
            raise RenderEngineUnavailableError(f"browser failed while rendering: {e}") from e
        finally:
            await self._close_quietly(page.close, "page")

    async def shutdown(self) -> None:
        browser, self._browser = self._browser, None
        playwright, self._playwright = self._playwright, None

        if browser is not None:
            await self._close_quietly(browser.close, "browser")
        if playwright is not None:
            await self._close_quietly(playwright.stop, "playwright driver")
        logger.debug("[PDFGenerator] Chromium shut down")

    @staticmethod
    async def _close_quietly(close: Callable, what: str) -> None:
        # A crashed browser fails its own teardown; the render error wins
        try:
            await close()
        except PlaywrightError as e:
            logger.warning(f"[PDFGenerator] Failed to close {what}: {e}")


class ReportPDFGenerator:
    """PDF renderer for the patient summary report"""

    def __init__(
        self,
        engine_factory: Optional[Callable[[], PrintEngine]] = None,
        options: Optional[PrintOptions] = None,
    ):
        self.engine_factory = engine_factory or ChromiumPrintEngine
        self.options = options or PrintOptions.from_settings()

    def build_markup(self, content: ReportContent) -> str:
        """HTML with the same blocks, in the same order, as the Word report"""
        esc = html.escape
        header_cells = "".join(f"<th>{esc(label)}</th>" for label in content.labels)
        value_cells = "".join(f"<td>{esc(value)}</td>" for value in content.values)
        column_width = 100 / len(content.labels)

        return f"""<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<style>
    @page {{ size: {self.options.page_format}; margin: {self.options.margin}; }}
    body {{ font-family: 'Times New Roman', serif; color: #000; margin: 0; }}
    .title {{ text-align: center; font-weight: bold; font-size: 14pt; margin: 0 0 20pt 0; }}
    table {{ width: 100%; border-collapse: collapse; table-layout: fixed; }}
    th, td {{ width: {column_width:.4f}%; border: 1px solid #000; padding: 0.05in;
              text-align: center; font-size: 12pt; }}
    th {{ font-weight: bold; }}
    td {{ font-weight: normal; }}
    .spacer {{ height: 25pt; }}
    .warning {{ text-align: center; font-weight: bold; font-size: 14pt; color: #{ATTENTION_COLOR}; margin: 0 0 10pt 0; }}
    .disclaimer {{ text-align: center; font-weight: bold; font-size: 12pt; margin: 0 0 10pt 0; }}
</style>
</head>
<body>
<p class="title">{esc(content.title)}</p>
<table>
<tr>{header_cells}</tr>
<tr>{value_cells}</tr>
</table>
<div class="spacer"></div>
<p class="warning">{esc(content.warning)}</p>
<p class="disclaimer">{esc(content.disclaimer)}</p>
</body>
</html>
"""

    async def render(self, stats: StatisticsSummary, date_from: datetime, date_to: datetime) -> bytes:
        """
        Render the report to PDF bytes.

        Raises:
            RenderEngineUnavailableError: browser could not be started or crashed
            RenderTimeoutError: content did not settle or capture did not finish in time
        """
        content = build_report_content(stats, date_from, date_to)
        markup = self.build_markup(content)

        async with self.engine_factory() as engine:
            data = await engine.render_to_pdf(markup, self.options)

        if not data:
            raise ReportGenerationError("print", "engine returned an empty document")

        logger.info(f"[PDFGenerator] Rendered report ({len(data)} bytes)")
        return data


# Singleton instance
pdf_generator = ReportPDFGenerator()
