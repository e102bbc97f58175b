"""Document loading service for scraping knowledge-base pages."""
import logging
import re
from typing import Optional

import httpx
from bs4 import BeautifulSoup

from config import GATEWAY_TIMEOUT_SECONDS
from models.document import Page
from services.errors import UpstreamError

logger = logging.getLogger(__name__)


class DocumentLoader:
    """Fetches web pages and reduces them to their main text content."""

    # Non-content elements removed before extracting text
    STRIP_SELECTOR = 'script, style, nav, footer, header, [role="navigation"]'
    # Elements holding the main content, body is used when none match
    CONTENT_SELECTOR = "main, article, .content, #content, .main"

    def __init__(
        self,
        timeout: float = GATEWAY_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Initialize DocumentLoader.

        Args:
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.timeout = timeout
        self.transport = transport

    async def load(self, url: str) -> Page:
        """
        Fetch a page and extract its cleaned text.

        Raises:
            UpstreamError: If the page cannot be fetched
        """
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self.transport, follow_redirects=True
            ) as client:
                response = await client.get(url)
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise UpstreamError(
                "HTTP_ERROR",
                f"Failed to fetch {url}: status {e.response.status_code}",
                {"url": url, "status_code": e.response.status_code}
            ) from e
        except httpx.HTTPError as e:
            raise UpstreamError("NETWORK_ERROR", f"Failed to fetch {url}: {e}", {"url": url}) from e

        page = self.parse_html(response.text, url)
        logger.info(f"Loaded {url}: {len(page.text)} characters")
        return page

    def parse_html(self, html: str, url: str) -> Page:
        """
        Extract title and main text from raw HTML.

        Args:
            html: Raw page markup
            url: Page URL

        Returns:
            Page with whitespace-collapsed text
        """
        soup = BeautifulSoup(html, "html.parser")

        for element in soup.select(self.STRIP_SELECTOR):
            element.decompose()

        title_tag = soup.find("title")
        title = title_tag.get_text().strip() if title_tag else ""

        # Outermost content containers only, so nested matches are not repeated
        containers = soup.select(self.CONTENT_SELECTOR)
        selected = {id(element) for element in containers}
        roots = [
            element for element in containers
            if not any(id(parent) in selected for parent in element.parents)
        ]
        text = " ".join(element.get_text(separator=" ") for element in roots)

        if not text.strip():
            body = soup.body or soup
            text = body.get_text(separator=" ")

        return Page(url=url, title=title, text=self.clean_text(text))

    @staticmethod
    def clean_text(text: str) -> str:
        return re.sub(r"\s+", " ", text).strip()
