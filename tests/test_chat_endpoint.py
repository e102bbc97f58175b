"""Integration tests for the HTTP API."""
import pytest
from fastapi.testclient import TestClient
from unittest.mock import AsyncMock, Mock, patch
import sys
import os

# Add backend to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'backend'))


@pytest.fixture
def client():
    """Create a test client with mocked services."""
    # Import after path is set
    from main import app
    from services.slot_extractor import SlotExtractor

    # Mock the startup event to avoid initializing real services
    with patch('main.startup_event'):
        client = TestClient(app)

        # Manually set the global services to mocks
        import main
        main.dialogue_engine = Mock()
        main.dialogue_engine.handle_message = AsyncMock()
        main.slot_extractor = SlotExtractor()
        main.pricing_service = Mock()
        main.pricing_service.get_estimate = AsyncMock()
        main.location_service = Mock()
        main.location_service.find_by_zip = AsyncMock()

        yield client


def test_root(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_chat(client):
    """Test the chat endpoint returns camelCase fields."""
    import main
    from services.dialogue_engine import DialogueReply

    main.dialogue_engine.handle_message.return_value = DialogueReply(
        reply="Please enter your zip code.",
        user_message="where is a kiosk",
        conversation_id="conv_abc123def456"
    )

    response = client.post("/api/chat", json={"message": "where is a kiosk", "conversationId": "conv_abc123def456"})

    assert response.status_code == 200
    assert response.json() == {
        "reply": "Please enter your zip code.",
        "userMessage": "where is a kiosk",
        "conversationId": "conv_abc123def456"
    }
    main.dialogue_engine.handle_message.assert_awaited_once_with("where is a kiosk", "conv_abc123def456")


def test_chat_without_conversation_id(client):
    import main
    from services.dialogue_engine import DialogueReply

    main.dialogue_engine.handle_message.return_value = DialogueReply(
        reply="Hi!", user_message="hello", conversation_id="conv_new"
    )

    response = client.post("/api/chat", json={"message": "hello"})

    assert response.status_code == 200
    assert response.json()["conversationId"] == "conv_new"
    main.dialogue_engine.handle_message.assert_awaited_once_with("hello", None)


def test_chat_empty_message(client):
    response = client.post("/api/chat", json={"message": "   "})
    assert response.status_code == 400
    assert response.json() == {"error": "Message is required"}


def test_chat_invalid_body(client):
    response = client.post("/api/chat", json={"conversationId": "c"})
    assert response.status_code == 400
    assert "error" in response.json()


def test_chat_unexpected_error(client):
    import main
    main.dialogue_engine.handle_message.side_effect = RuntimeError("boom")

    response = client.post("/api/chat", json={"message": "hello"})

    assert response.status_code == 500
    assert response.json() == {"error": "Something went wrong"}


def test_locations(client):
    import main
    from models.location import KioskLocation

    main.location_service.find_by_zip.return_value = [
        KioskLocation(name="ecoATM Vons", address="515 W Washington St", city="San Diego", state="CA")
    ]

    response = client.get("/api/locations/92101")

    assert response.status_code == 200
    assert response.json() == {"locations": [
        {"Name": "ecoATM Vons", "Address": "515 W Washington St", "City": "San Diego", "State": "CA"}
    ]}


def test_locations_invalid_zip(client):
    response = client.get("/api/locations/abc")
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid zip code format"}


def test_locations_unknown_zip(client):
    import main
    from services.errors import NotFoundError

    main.location_service.find_by_zip.side_effect = NotFoundError("unknown")

    response = client.get("/api/locations/00000")

    assert response.status_code == 200
    assert response.json() == {"locations": []}


def test_locations_upstream_failure(client):
    import main
    from services.errors import UpstreamError

    main.location_service.find_by_zip.side_effect = UpstreamError("HTTP_ERROR", "down")

    response = client.get("/api/locations/92101")

    assert response.status_code == 502


def test_estimate_with_defaults(client):
    """Test storage and carrier default on the structured path."""
    import main
    from models.estimate import Estimate

    main.pricing_service.get_estimate.return_value = Estimate.from_payload({"offer": 85, "offerId": "o-1"})

    response = client.post("/api/estimate", json={"brandName": "Apple", "modelName": "iPhone 12"})

    assert response.status_code == 200
    assert response.json() == {"estimate": {"offer": 85, "offerId": "o-1"}}
    slots = main.pricing_service.get_estimate.call_args.args[0]
    assert slots.storage == "128GB"
    assert slots.carrier == "Verizon"


def test_estimate_missing_model(client):
    response = client.post("/api/estimate", json={"brandName": "Apple"})
    assert response.status_code == 400
    assert response.json() == {"error": "Missing required device information"}


def test_estimate_upstream_failure(client):
    import main
    from services.errors import UpstreamError

    main.pricing_service.get_estimate.side_effect = UpstreamError("API_ERROR", "bad")

    response = client.post("/api/estimate", json={"brandName": "Apple", "modelName": "iPhone 12"})

    assert response.status_code == 502
    assert "error" in response.json()
