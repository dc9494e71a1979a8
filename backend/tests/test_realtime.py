import json
import unittest
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

from starlette.websockets import WebSocketDisconnect

from support import ApiTestCase

from event_portal.services import realtime
from event_portal.services.redis_pubsub import RedisPubSubService
from event_portal.services.websocket_manager import (
    ConnectionManager,
    conversation_room,
    manager,
    user_room,
)


def fake_socket():
    websocket = MagicMock()
    websocket.accept = AsyncMock()
    websocket.send_json = AsyncMock()
    return websocket


class ConnectionManagerTests(unittest.IsolatedAsyncioTestCase):
    async def test_connect_joins_user_room(self):
        rooms = ConnectionManager()
        websocket = fake_socket()
        user_id = uuid4()

        await rooms.connect(websocket, user_id)

        websocket.accept.assert_awaited_once()
        self.assertEqual(rooms.get_room_size(user_room(user_id)), 1)

    async def test_emit_reaches_only_room_members(self):
        rooms = ConnectionManager()
        inside, outside = fake_socket(), fake_socket()
        await rooms.join(inside, "conversation-1")
        await rooms.join(outside, "conversation-2")

        delivered = await rooms.emit("conversation-1", "new-message", {"id": "m1"})

        self.assertEqual(delivered, 1)
        inside.send_json.assert_awaited_once_with({"event": "new-message", "data": {"id": "m1"}})
        outside.send_json.assert_not_awaited()

    async def test_failed_socket_is_dropped_from_every_room(self):
        rooms = ConnectionManager()
        broken = fake_socket()
        broken.send_json.side_effect = RuntimeError("closed")
        await rooms.join(broken, "user-1")
        await rooms.join(broken, "conversation-1")

        delivered = await rooms.emit("user-1", "messages-read", {})

        self.assertEqual(delivered, 0)
        self.assertEqual(rooms.rooms, {})

    async def test_disconnect_leaves_all_rooms(self):
        rooms = ConnectionManager()
        websocket, other = fake_socket(), fake_socket()
        user_id = uuid4()
        await rooms.connect(websocket, user_id)
        await rooms.join(websocket, "conversation-1")
        await rooms.join(other, "conversation-1")

        await rooms.disconnect(websocket, user_id)

        self.assertEqual(rooms.get_room_size(user_room(user_id)), 0)
        self.assertEqual(rooms.get_room_size("conversation-1"), 1)

    def test_conversation_room_is_symmetric(self):
        event_id, a, b = uuid4(), uuid4(), uuid4()

        self.assertEqual(conversation_room(event_id, a, b), conversation_room(event_id, b, a))


class RealtimeEmitTests(unittest.IsolatedAsyncioTestCase):
    async def test_emit_goes_to_local_manager_without_backplane(self):
        with patch.object(realtime.redis_pubsub, "redis", None), patch.object(
            realtime.manager, "emit", new_callable=AsyncMock
        ) as local_emit:
            await realtime.emit("user-1", realtime.NEW_MESSAGE, {"id": "m1"})

        local_emit.assert_awaited_once_with("user-1", "new-message", {"id": "m1"})

    async def test_emit_publishes_when_backplane_connected(self):
        redis = MagicMock()
        redis.publish = AsyncMock()
        with patch.object(realtime.redis_pubsub, "redis", redis), patch.object(
            realtime.manager, "emit", new_callable=AsyncMock
        ) as local_emit:
            await realtime.emit("user-1", realtime.MESSAGES_READ, {"event_id": "e1"})

        local_emit.assert_not_awaited()
        channel, raw = redis.publish.await_args.args
        self.assertEqual(channel, realtime.redis_pubsub.channel)
        self.assertEqual(
            json.loads(raw),
            {"room": "user-1", "event": "messages-read", "data": {"event_id": "e1"}},
        )

    async def test_relayed_message_is_delivered_locally(self):
        service = RedisPubSubService(channel="test")
        raw = json.dumps({"room": "user-1", "event": "new-message", "data": {"id": "m1"}})

        with patch(
            "event_portal.services.redis_pubsub.manager.emit", new_callable=AsyncMock, return_value=1
        ) as local_emit:
            delivered = await service.handle_message(raw)

        self.assertEqual(delivered, 1)
        local_emit.assert_awaited_once_with("user-1", "new-message", {"id": "m1"})


class WebSocketEndpointTests(ApiTestCase):
    def setUp(self):
        super().setUp()
        engine_patcher = patch("event_portal.api.routes.websocket.engine", self.engine)
        engine_patcher.start()
        self.addCleanup(engine_patcher.stop)
        self.user = self.create_user("alice@example.com")
        self.token = self.auth_headers(self.user)["Authorization"].split()[1]

    def test_rejects_invalid_token(self):
        with self.assertRaises(WebSocketDisconnect):
            with self.client.websocket_connect("/api/ws?token=garbage") as websocket:
                websocket.receive_json()

    def test_connect_join_and_ping(self):
        event_id, other_id = uuid4(), uuid4()
        room = conversation_room(event_id, self.user.id, other_id)

        with self.client.websocket_connect(f"/api/ws?token={self.token}") as websocket:
            connected = websocket.receive_json()
            self.assertEqual(connected["event"], "connected")
            self.assertEqual(manager.get_room_size(user_room(self.user.id)), 1)

            websocket.send_json(
                {"event": "join-conversation", "data": {"event_id": str(event_id), "other_user_id": str(other_id)}}
            )
            self.assertEqual(websocket.receive_json(), {"event": "joined", "data": {"room": room}})

            websocket.send_json({"event": "join-user-room", "data": {"user_id": str(uuid4())}})
            self.assertEqual(websocket.receive_json()["event"], "error")

            websocket.send_json({"event": "ping"})
            self.assertEqual(websocket.receive_json()["event"], "pong")

            websocket.send_json(
                {"event": "leave-conversation", "data": {"event_id": str(event_id), "other_user_id": str(other_id)}}
            )
            self.assertEqual(websocket.receive_json()["event"], "left")
            self.assertEqual(manager.get_room_size(room), 0)

    def test_non_object_data_gets_error_frame(self):
        with self.client.websocket_connect(f"/api/ws?token={self.token}") as websocket:
            websocket.receive_json()

            websocket.send_json({"event": "join-conversation", "data": "oops"})
            self.assertEqual(
                websocket.receive_json(),
                {"event": "error", "data": {"message": "data must be an object"}},
            )

            websocket.send_json({"event": "ping", "data": [1, 2]})
            self.assertEqual(websocket.receive_json()["event"], "error")

            websocket.send_json({"event": "ping"})
            self.assertEqual(websocket.receive_json()["event"], "pong")


if __name__ == "__main__":
    unittest.main()
