"""Tests for the keep-alive job and the event publishers."""

import json
from unittest.mock import MagicMock

import requests

import keepalive_job
from events import OrderCancelledEvent, OrderPlacedEvent
from kafka_client import BaseKafkaProducer, DisabledEventPublisher, KafkaEventPublisher
from keepalive_job import KeepAliveJob


def placed_event() -> OrderPlacedEvent:
    return OrderPlacedEvent(
        correlation_id="ORD-1",
        order_id="ORD-1",
        farmer_id="USR-F",
        dealer_id="USR-D",
        shop_id="SHOP-1",
        items=[{"product_id": "PROD-1", "product_name": "Urea", "quantity": 2, "price": 250.0}],
        total_amount=500.0,
        payment_mode="cod",
    )


class TestKeepAliveJob:
    def test_ping_success(self, monkeypatch):
        monkeypatch.setattr(keepalive_job.requests, "get", MagicMock(return_value=MagicMock(ok=True, status_code=200)))

        assert KeepAliveJob("http://localhost:8000/health").ping() is True

    def test_ping_failure_is_logged_not_raised(self, monkeypatch):
        monkeypatch.setattr(
            keepalive_job.requests, "get", MagicMock(side_effect=requests.ConnectionError("down"))
        )

        assert KeepAliveJob("http://localhost:8000/health").ping() is False

    def test_stop_ends_thread(self, monkeypatch):
        get = MagicMock(return_value=MagicMock(ok=True, status_code=200))
        monkeypatch.setattr(keepalive_job.requests, "get", get)
        job = KeepAliveJob("http://localhost:8000/health", interval_seconds=3600, timeout=2)

        thread = job.start()
        job.stop()

        assert not thread.is_alive()
        get.assert_not_called()


class TestEventPublishers:
    def test_kafka_publisher_routes_by_event_type(self):
        producer = MagicMock()
        publisher = KafkaEventPublisher(producer)
        event = placed_event()

        publisher.publish(event)

        producer.publish.assert_called_once_with("order.placed", event)

    def test_kafka_publisher_swallows_failures(self):
        producer = MagicMock()
        producer.publish.side_effect = RuntimeError("broker down")

        KafkaEventPublisher(producer).publish(placed_event())

    def test_close_flushes(self):
        producer = MagicMock()

        KafkaEventPublisher(producer).close()

        producer.flush.assert_called_once()

    def test_disabled_publisher_accepts_events(self):
        publisher = DisabledEventPublisher()

        publisher.publish(placed_event())
        publisher.close()


class TestBaseKafkaProducer:
    def test_publish_keys_message_by_correlation_id(self, monkeypatch):
        fake_producer = MagicMock()
        monkeypatch.setattr("kafka_client.Producer", MagicMock(return_value=fake_producer))
        producer = BaseKafkaProducer("localhost:9092", client_id="test")
        event = OrderCancelledEvent(
            correlation_id="ORD-9", order_id="ORD-9", farmer_id="USR-F", dealer_id="USR-D", cancelled_by="farmer"
        )

        producer.publish("order.cancelled", event)

        kwargs = fake_producer.produce.call_args.kwargs
        assert kwargs["topic"] == "order.cancelled"
        assert kwargs["key"] == b"ORD-9"
        payload = json.loads(kwargs["value"].decode("utf-8"))
        assert payload["event_type"] == "order.cancelled"
        assert payload["cancelled_by"] == "farmer"
        fake_producer.flush.assert_called()


class TestTopicInitializer:
    def test_creates_every_order_topic(self, monkeypatch):
        import topic_initializer

        future = MagicMock()
        admin = MagicMock()
        admin.create_topics.side_effect = lambda topics, validate_only: {t.topic: future for t in topics}
        monkeypatch.setattr(topic_initializer, "AdminClient", MagicMock(return_value=admin))

        topic_initializer.create_topics("localhost:9092")

        created = [t.topic for t in admin.create_topics.call_args.args[0]]
        assert sorted(created) == sorted(topic_initializer.ALL_TOPICS)

    def test_existing_topics_are_not_an_error(self, monkeypatch):
        import topic_initializer

        future = MagicMock()
        future.result.side_effect = Exception("TOPIC_ALREADY_EXISTS")
        admin = MagicMock()
        admin.create_topics.side_effect = lambda topics, validate_only: {t.topic: future for t in topics}
        monkeypatch.setattr(topic_initializer, "AdminClient", MagicMock(return_value=admin))

        topic_initializer.create_topics("localhost:9092")

        admin.create_topics.assert_called_once()
