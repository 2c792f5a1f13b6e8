import pytest
from channels.layers import get_channel_layer
from channels.testing import WebsocketCommunicator

from escalations.consumers import EscalationConsumer


@pytest.mark.asyncio
async def test_escalation_events_reach_connected_clients():
    communicator = WebsocketCommunicator(EscalationConsumer.as_asgi(), "/ws/escalations/")
    connected, _ = await communicator.connect()
    assert connected

    await get_channel_layer().group_send(
        "escalations",
        {"type": "escalation.message", "message": {"ticket_number": "1010", "priority": "Urgent"}},
    )

    response = await communicator.receive_json_from()
    assert response == {
        "type": "escalation_message",
        "message": {"ticket_number": "1010", "priority": "Urgent"},
    }
    await communicator.disconnect()
