import datetime as dt
import json

from channels.generic.websocket import AsyncWebsocketConsumer

from frontdesk.services.appointments import timeline_group


class TimelineConsumer(AsyncWebsocketConsumer):
    """Push ``timeline.changed`` events for the day the client is viewing.

    The client sends ``{"type": "subscribe", "date": "YYYY-MM-DD"}`` whenever
    it switches days; only one day is followed per connection.
    """

    async def connect(self):
        user = self.scope.get("user")
        if not (user and user.is_authenticated):
            await self.close(code=4003)
            return
        self.group_name = None
        await self.accept()
        await self.send(json.dumps({"type": "welcome", "message": "connected"}))

    async def disconnect(self, close_code):
        if getattr(self, "group_name", None):
            await self.channel_layer.group_discard(self.group_name, self.channel_name)

    async def receive(self, text_data=None, bytes_data=None):
        if not text_data:
            return
        try:
            msg = json.loads(text_data)
        except json.JSONDecodeError:
            await self._error(4000, "invalid_json")
            return
        if not isinstance(msg, dict) or msg.get("type") != "subscribe":
            await self._error(4001, "unsupported_message")
            return
        try:
            day = dt.date.fromisoformat(str(msg.get("date", "")))
        except ValueError:
            await self._error(4002, "invalid_date")
            return

        if self.group_name:
            await self.channel_layer.group_discard(self.group_name, self.channel_name)
        self.group_name = timeline_group(day)
        await self.channel_layer.group_add(self.group_name, self.channel_name)
        await self.send(json.dumps({"type": "subscribed", "date": day.isoformat()}))

    async def _error(self, code: int, message: str):
        await self.send(json.dumps({"type": "error", "code": code, "message": message}))

    # group_send 事件: {"type": "timeline.changed", "date": ..., "appointmentId": ..., "action": ...}
    async def timeline_changed(self, event):
        await self.send(json.dumps(event))
