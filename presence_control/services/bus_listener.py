from __future__ import annotations

import asyncio
import logging
import random
from typing import Callable, Optional

import aiomqtt

from ..domain.errors import BusConnectionFault
from ..domain.events import BusMessage, Event

logger = logging.getLogger(__name__)

RETRY_INITIAL_S = 5.0
RETRY_MAX_S = 60.0


class MqttBusListener:
    """Subscribes to the presence topic and forwards raw payloads.

    Reconnects with jittered exponential backoff. Decoding happens in the
    engine so a malformed message only costs that message.
    """

    def __init__(
        self,
        submit: Callable[[Event], None],
        topic: str,
        hostname: str = "localhost",
        port: int = 1883,
        username: Optional[str] = None,
        password: Optional[str] = None,
    ) -> None:
        self._submit = submit
        self._topic = topic
        self._hostname = hostname
        self._port = port
        self._username = username
        self._password = password
        self._task: Optional[asyncio.Task] = None
        self.connected = False

    async def start(self) -> None:
        self._task = asyncio.create_task(self._listen_loop(), name="mqtt_listener")

    async def stop(self) -> None:
        if self._task:
            self._task.cancel()
            await asyncio.gather(self._task, return_exceptions=True)
            self._task = None
        self.connected = False

    async def _listen_once(self, on_session: Callable[[], None]) -> None:
        try:
            async with aiomqtt.Client(
                hostname=self._hostname,
                port=self._port,
                username=self._username,
                password=self._password,
            ) as client:
                self.connected = True
                logger.info("MQTT connected to %s:%s", self._hostname, self._port)
                await client.subscribe(self._topic)
                logger.info("Subscribed to MQTT topic: %s", self._topic)
                on_session()
                async for message in client.messages:
                    self._submit(BusMessage(topic=str(message.topic), payload=message.payload))
        except aiomqtt.MqttError as e:
            raise BusConnectionFault(str(e)) from e
        finally:
            self.connected = False

    async def _listen_loop(self) -> None:
        retry_delay = RETRY_INITIAL_S

        def reset_backoff() -> None:
            nonlocal retry_delay
            retry_delay = RETRY_INITIAL_S

        while True:
            try:
                await self._listen_once(reset_backoff)
            except BusConnectionFault as e:
                delay = retry_delay * random.uniform(0.75, 1.25)
                logger.warning("MQTT connection failed: %s, retrying in %.1fs", e, delay)
                await asyncio.sleep(delay)
                retry_delay = min(retry_delay * 2, RETRY_MAX_S)
