"""
kafka_client.py - Kafka Producer Wrapper and Event Publishers

PURPOSE:
    Publishes order domain events to Kafka with JSON serialization and
    delivery reporting. The marketplace only produces events; nothing in the
    process consumes them.

CLASSES:
    1. BaseKafkaProducer: Thin confluent-kafka producer
       - JSON serialization of pydantic events or plain dicts
       - Delivery acknowledgments from all replicas (acks=all)
       - 3 retries, snappy compression

    2. KafkaEventPublisher: Request-safe facade over BaseKafkaProducer
       - Never raises into the caller; failures are logged

    3. DisabledEventPublisher: Used when KAFKA_ENABLED is false
       - Logs the event at DEBUG and drops it

USAGE:
    producer = BaseKafkaProducer("localhost:9092", client_id="marketplace-producer")
    publisher = KafkaEventPublisher(producer)
    publisher.publish(OrderPlacedEvent(...))
    publisher.close()
"""

import json
import logging
from typing import Optional, Union

from confluent_kafka import Producer
from confluent_kafka.error import KafkaError

try:
    from shared.events import BaseEvent
except ImportError:
    from events import BaseEvent

logger = logging.getLogger(__name__)


class BaseKafkaProducer:
    """
    Base Kafka producer with JSON serialization and delivery callbacks.
    """

    def __init__(self, bootstrap_servers: str, client_id: str = "producer"):
        """
        Initialize Kafka producer.

        Args:
            bootstrap_servers: Comma-separated Kafka broker addresses
            client_id: Unique identifier for this producer instance
        """
        self.config = {
            "bootstrap.servers": bootstrap_servers,
            "client.id": client_id,
            "acks": "all",
            "retries": 3,
            "compression.type": "snappy",
        }
        self.producer = Producer(self.config)

    def _delivery_report(self, err: Optional[KafkaError], msg) -> None:
        """Delivery report handler called by producer on message delivery."""
        if err is not None:
            logger.error(f"Message delivery failed: {err}")
        else:
            logger.info(
                f"Message delivered to topic={msg.topic()}, "
                f"partition={msg.partition()}, offset={msg.offset()}"
            )

    def publish(self, topic: str, event: Union[BaseEvent, dict]) -> None:
        """Publish event to Kafka topic."""
        try:
            if isinstance(event, dict):
                message = json.dumps(event)
                event_type = event.get("event_type", "unknown")
                correlation_id = event.get("correlation_id", "unknown")
            else:
                message = event.model_dump_json()
                event_type = event.event_type
                correlation_id = event.correlation_id

            self.producer.produce(
                topic=topic,
                value=message.encode("utf-8"),
                key=correlation_id.encode("utf-8"),
                callback=self._delivery_report,
            )
            self.producer.flush()
            logger.info(
                f"Published event to {topic}",
                extra={"event_type": event_type, "correlation_id": correlation_id},
            )
        except Exception as e:
            logger.error(f"Error publishing event to {topic}: {e}")
            raise

    def flush(self) -> None:
        """Flush any pending messages."""
        self.producer.flush()


class KafkaEventPublisher:
    """Publishes domain events to the topic named by their event_type."""

    def __init__(self, producer: BaseKafkaProducer):
        self.producer = producer

    def publish(self, event: BaseEvent) -> None:
        try:
            self.producer.publish(event.event_type, event)
        except Exception:
            logger.exception(
                "Dropping event after publish failure",
                extra={"event_type": event.event_type, "correlation_id": event.correlation_id},
            )

    def close(self) -> None:
        self.producer.flush()


class DisabledEventPublisher:
    """Stand-in publisher for deployments without a Kafka broker."""

    def publish(self, event: BaseEvent) -> None:
        logger.debug(
            "Kafka disabled, not publishing event",
            extra={"event_type": event.event_type, "correlation_id": event.correlation_id},
        )

    def close(self) -> None:
        pass
