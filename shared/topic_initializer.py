"""
topic_initializer.py - Kafka Topic Auto-Creation Utility

PURPOSE:
    Creates the order event topics on startup when Kafka publishing is
    enabled. Idempotent: topics that already exist are left alone.

RETRY LOGIC:
    Brokers may not be ready when the service boots, so creation is retried
    up to 10 times with a 3-second delay.
"""

import logging
import time
from typing import List

from confluent_kafka.admin import AdminClient, NewTopic

try:
    from shared.events import ALL_TOPICS
except ImportError:
    from events import ALL_TOPICS

logger = logging.getLogger(__name__)


def create_topics(bootstrap_servers: str, num_partitions: int = 3, replication_factor: int = 1) -> None:
    """
    Create all order event topics.

    Args:
        bootstrap_servers: Comma-separated Kafka broker addresses
        num_partitions: Number of partitions per topic (default: 3)
        replication_factor: Number of replicas per partition (default: 1)
    """
    admin_client = AdminClient({"bootstrap.servers": bootstrap_servers})

    topics_to_create: List[NewTopic] = [
        NewTopic(topic, num_partitions=num_partitions, replication_factor=replication_factor)
        for topic in ALL_TOPICS
    ]

    max_retries = 10
    retry_delay = 3

    for attempt in range(max_retries):
        try:
            logger.info(f"Creating topics (attempt {attempt + 1}/{max_retries})...")
            fs = admin_client.create_topics(topics_to_create, validate_only=False)

            for topic, future in fs.items():
                try:
                    future.result(timeout=10)
                    logger.info(f"Topic '{topic}' created successfully")
                except Exception as e:
                    if "already exists" in str(e) or "TOPIC_ALREADY_EXISTS" in str(e):
                        logger.info(f"Topic '{topic}' already exists")
                    else:
                        logger.warning(f"Error creating topic '{topic}': {e}")

            logger.info("All topics processed successfully")
            break

        except Exception as e:
            if attempt < max_retries - 1:
                logger.warning(f"Failed to create topics (attempt {attempt + 1}): {e}. Retrying in {retry_delay}s...")
                time.sleep(retry_delay)
            else:
                logger.error(f"Failed to create topics after {max_retries} attempts: {e}")
                raise
