"""Unit tests for DocumentLoader."""
import sys
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

import httpx
import pytest
from services.document_loader import DocumentLoader
from services.errors import UpstreamError

PAGE_HTML = """
<html>
  <head><title> How It Works </title><style>.x { color: red; }</style></head>
  <body>
    <header>Site header</header>
    <nav>Home | FAQ</nav>
    <div role="navigation">Breadcrumbs</div>
    <main>
      <h1>Sell your phone</h1>
      <article>
        <p>Place your device
           in the kiosk.</p>
      </article>
      <script>trackPage();</script>
    </main>
    <footer>Copyright</footer>
  </body>
</html>
"""


class TestDocumentLoader:
    """Test suite for DocumentLoader class."""

    @pytest.fixture
    def loader(self):
        return DocumentLoader()

    def test_parse_title_and_main_content(self, loader):
        page = loader.parse_html(PAGE_HTML, "https://www.ecoatm.com/how-it-works/")

        assert page.title == "How It Works"
        assert page.url == "https://www.ecoatm.com/how-it-works/"
        assert page.text == "Sell your phone Place your device in the kiosk."

    def test_strips_non_content_elements(self, loader):
        page = loader.parse_html(PAGE_HTML, "u")

        for removed in ("Site header", "Home | FAQ", "Breadcrumbs", "trackPage", "Copyright", "color"):
            assert removed not in page.text

    def test_nested_containers_not_repeated(self, loader):
        """Test an article inside main contributes its text once."""
        page = loader.parse_html(PAGE_HTML, "u")
        assert page.text.count("Place your device") == 1

    def test_falls_back_to_body(self, loader):
        html = "<html><body><div>Plain   body\ntext</div><footer>f</footer></body></html>"
        page = loader.parse_html(html, "u")
        assert page.title == ""
        assert page.text == "Plain body text"

    def test_content_class_selector(self, loader):
        html = '<body><div class="content">Inside</div><div>Outside</div></body>'
        page = loader.parse_html(html, "u")
        assert page.text == "Inside"

    def test_clean_text(self):
        assert DocumentLoader.clean_text("  a \n\t b  ") == "a b"

    @pytest.mark.asyncio
    async def test_load(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, html=PAGE_HTML))
        loader = DocumentLoader(transport=transport)

        page = await loader.load("https://www.ecoatm.com/how-it-works/")

        assert page.title == "How It Works"
        assert "Sell your phone" in page.text

    @pytest.mark.asyncio
    async def test_load_http_error(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(404))
        loader = DocumentLoader(transport=transport)

        with pytest.raises(UpstreamError) as exc_info:
            await loader.load("https://www.ecoatm.com/missing/")

        assert exc_info.value.code == "HTTP_ERROR"
        assert exc_info.value.details["status_code"] == 404

    @pytest.mark.asyncio
    async def test_load_network_error(self):
        def handler(request):
            raise httpx.ConnectError("unreachable", request=request)

        loader = DocumentLoader(transport=httpx.MockTransport(handler))

        with pytest.raises(UpstreamError) as exc_info:
            await loader.load("https://www.ecoatm.com/faq/")

        assert exc_info.value.code == "NETWORK_ERROR"
