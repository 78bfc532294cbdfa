"""
Fire-and-forget notifications.

Delivery failures never reach the caller of a registry or streak operation:
`deliver` logs them and counts them.
"""
import asyncio
import json
import logging
from typing import Any, Dict
import httpx
from pydantic import BaseModel, Field

from ..core import NOTIFICATION_FAILURES

logger = logging.getLogger(__name__)


class NotificationEvent(BaseModel):
    type: str
    recipient_id: str
    payload: Dict[str, Any] = Field(default_factory=dict)


class Notifier:

    async def notify(self, event: NotificationEvent):
        raise NotImplementedError

    async def start(self):
        pass

    async def stop(self):
        pass


class NullNotifier(Notifier):

    async def notify(self, event):
        logger.debug({'msg': 'notification_dropped', 'type': event.type})


class HttpNotifier(Notifier):

    def __init__(self, base_url: str, timeout: float = 5.0, client: httpx.AsyncClient | None = None):
        self.client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def notify(self, event):
        response = await self.client.post('/events', json=event.model_dump())
        response.raise_for_status()

    async def stop(self):
        await self.client.aclose()


class KafkaNotifier(Notifier):
    """Publishes events as JSON to a Kafka topic, keyed by recipient"""

    def __init__(self, brokers: str, topic: str, max_retries: int = 3, retry_delay: float = 5):
        self.brokers = brokers
        self.topic = topic
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.producer = None

    async def start(self):
        from aiokafka import AIOKafkaProducer

        for attempt in range(self.max_retries):
            producer = AIOKafkaProducer(
                bootstrap_servers=self.brokers,
                retry_backoff_ms=500,
                request_timeout_ms=30000,
                linger_ms=100,
                compression_type='gzip',
                acks='all',
            )
            try:
                logger.info(f"Attempting to connect to Kafka brokers: {self.brokers} (attempt {attempt + 1}/{self.max_retries})")
                await producer.start()
                self.producer = producer
                logger.info("Kafka producer connected successfully")
                return
            except Exception as e:
                logger.warning(f'Kafka startup attempt {attempt + 1} failed: {e}')
                await producer.stop()
                if attempt < self.max_retries - 1:
                    await asyncio.sleep(self.retry_delay)
        logger.error("Failed to connect to Kafka after all retries")

    async def notify(self, event):
        if not self.producer:
            raise RuntimeError('Kafka producer not started')
        await self.producer.send_and_wait(
            self.topic,
            json.dumps(event.model_dump()).encode('utf-8'),
            key=event.recipient_id.encode('utf-8'),
        )

    async def stop(self):
        if self.producer:
            await self.producer.stop()
            self.producer = None


async def deliver(notifier: Notifier, event: NotificationEvent):
    try:
        await notifier.notify(event)
    except Exception as e:
        NOTIFICATION_FAILURES.inc()
        logger.warning({'msg': 'notification_failed', 'type': event.type, 'recipient_id': event.recipient_id, 'error': str(e)})
