"""Tests del decodificador de mensajes.

Ejecutar:
    pytest tests/test_decoder.py -v
"""

import json

import pytest

from hubitat_ingest.core.domain.hub_event import HubEvent
from hubitat_ingest.stream.decoder import DecodeError, MessageDecoder, decode_message


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def decoder() -> MessageDecoder:
    return MessageDecoder()


@pytest.fixture
def switch_payload() -> str:
    """Evento típico del eventsocket."""
    return json.dumps({
        "source": "DEVICE",
        "name": "switch",
        "displayName": "Kitchen Light",
        "value": "on",
        "unit": None,
        "deviceId": 42,
        "hubId": 0,
        "locationId": 1,
        "installedAppId": 0,
        "descriptionText": "Kitchen Light was turned on",
        "type": "physical",
    })


# =============================================================================
# TEST 1: PAYLOADS VÁLIDOS
# =============================================================================

class TestValidPayloads:
    """Decodificación de eventos bien formados."""

    def test_decodes_all_fields(self, decoder, switch_payload):
        event = decoder.decode(switch_payload)

        assert isinstance(event, HubEvent)
        assert event.name == "switch"
        assert event.value == "on"
        assert event.display_name == "Kitchen Light"
        assert event.source == "DEVICE"
        assert event.unit is None
        assert event.description_text == "Kitchen Light was turned on"

    def test_numeric_ids_become_strings(self, decoder, switch_payload):
        event = decoder.decode(switch_payload)

        assert event.device_id == "42"
        assert event.hub_id == "0"
        assert event.location_id == "1"
        assert event.installed_app_id == "0"

    def test_numeric_value_becomes_string(self, decoder):
        event = decoder.decode('{"name": "temperature", "value": 68.5, "unit": "F"}')

        assert event.value == "68.5"

    def test_missing_fields_are_none(self, decoder):
        event = decoder.decode('{"name": "battery"}')

        assert event.name == "battery"
        assert event.value is None
        assert event.device_id is None
        assert event.display_name is None

    def test_empty_object(self, decoder):
        event = decoder.decode("{}")

        assert event.name is None
        assert event.value is None

    def test_unknown_fields_are_ignored(self, decoder, switch_payload):
        event = decoder.decode(switch_payload)

        assert not hasattr(event, "type")

    def test_bytes_payload(self, decoder):
        event = decoder.decode(b'{"name": "switch", "value": "off"}')

        assert event.value == "off"

    def test_shortcut_function(self, switch_payload):
        assert decode_message(switch_payload).name == "switch"


# =============================================================================
# TEST 2: PAYLOADS MALFORMADOS
# =============================================================================

class TestMalformedPayloads:
    """Un payload inválido produce DecodeError y nada más."""

    def test_truncated_json(self, decoder):
        with pytest.raises(DecodeError) as exc_info:
            decoder.decode('{"name": "switch", "value": ')

        assert exc_info.value.cause is not None

    def test_not_json(self, decoder):
        with pytest.raises(DecodeError):
            decoder.decode("hello hub")

    def test_empty_payload(self, decoder):
        with pytest.raises(DecodeError):
            decoder.decode("")

    @pytest.mark.parametrize("payload", ["[1, 2, 3]", '"switch"', "42", "null"])
    def test_non_object_json(self, decoder, payload):
        with pytest.raises(DecodeError, match="Expected JSON object"):
            decoder.decode(payload)

    def test_incompatible_field_type(self, decoder):
        with pytest.raises(DecodeError, match="Invalid event fields"):
            decoder.decode('{"name": {"nested": true}}')

    def test_decode_error_is_value_error(self, decoder):
        with pytest.raises(ValueError):
            decoder.decode("{")

    def test_excerpt_is_truncated(self, decoder):
        payload = "x" * 1000
        with pytest.raises(DecodeError) as exc_info:
            decoder.decode(payload)

        assert exc_info.value.payload_excerpt == "x" * 200
