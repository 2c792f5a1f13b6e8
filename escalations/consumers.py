import json
from channels.generic.websocket import AsyncWebsocketConsumer

from escalations.constants import ESCALATION_GROUP


class EscalationConsumer(AsyncWebsocketConsumer):
    group_name = ESCALATION_GROUP

    async def connect(self):
        await self.channel_layer.group_add(self.group_name, self.channel_name)
        await self.accept()

    async def disconnect(self, close_code):
        await self.channel_layer.group_discard(self.group_name, self.channel_name)

    async def escalation_message(self, event):
        await self.send(text_data=json.dumps({
            "type": "escalation_message",
            "message": event.get("message"),
        }))
