"""Abuse-detection service — reads platform events, emits verdicts.

Consumes request/comment/view events from the input topic, runs each
through the AbuseCoordinator, and publishes a verdict record for every
event that was blocked or flagged.  Channel activity polling and
view-count sampling run in the background for each --channel-id and
--item-id against the in-memory MockPlatform; a real API client plugs in
through the same Platform protocol.

Usage:
    python -m botguard.main
    python -m botguard.main --config botguard.yml --item-id v_123 --metrics-port 9100
"""

import argparse
import json
import signal
import sys

from confluent_kafka import Consumer, Producer, KafkaError
from confluent_kafka.admin import AdminClient, NewTopic
from prometheus_client import start_http_server

from botguard.config import Settings, load_settings, override
from botguard.coordinator import AbuseCoordinator
from botguard.events import dispatch
from botguard.mock import MockPlatform

running = True


def _shutdown(sig, frame):
    global running
    print("\nShutting down abuse detector...")
    running = False


def _ensure_topic(bootstrap_servers, topic):
    """Create the output topic if it doesn't already exist."""
    admin = AdminClient({"bootstrap.servers": bootstrap_servers})
    fs = admin.create_topics([NewTopic(topic, num_partitions=3, replication_factor=3)])
    for t, f in fs.items():
        try:
            f.result()
            print(f"Created topic '{t}'")
        except Exception as e:
            if "TOPIC_ALREADY_EXISTS" in str(e):
                print(f"Topic '{t}' already exists")
            else:
                raise


def main():
    parser = argparse.ArgumentParser(description="Abuse detection service")
    parser.add_argument("--bootstrap-servers", default="localhost:9092")
    parser.add_argument("--input-topic", default="platform-events")
    parser.add_argument("--output-topic", default="abuse-verdicts")
    parser.add_argument("--group-id", default="abuse-detector")
    parser.add_argument("--config", help="YAML file overriding default thresholds")
    parser.add_argument("--rate-limit", type=int)
    parser.add_argument("--view-threshold", type=int)
    parser.add_argument("--channel-id", action="append", default=[],
                        help="Channel to poll for suspicious activity (repeatable)")
    parser.add_argument("--item-id", action="append", default=[],
                        help="Content item to sample view counts for (repeatable)")
    parser.add_argument("--metrics-port", type=int,
                        help="Expose Prometheus metrics on this port")
    args = parser.parse_args()

    settings = load_settings(args.config) if args.config else Settings()
    settings = override(settings, rate_limit=args.rate_limit,
                        view_threshold=args.view_threshold)

    signal.signal(signal.SIGINT, _shutdown)
    signal.signal(signal.SIGTERM, _shutdown)

    if args.metrics_port:
        start_http_server(args.metrics_port)
        print(f"Metrics on :{args.metrics_port}/metrics")

    _ensure_topic(args.bootstrap_servers, args.output_topic)

    consumer = Consumer({
        "bootstrap.servers": args.bootstrap_servers,
        "group.id": args.group_id,
        "auto.offset.reset": "earliest",
        "enable.auto.commit": True,
    })
    consumer.subscribe([args.input_topic])

    producer = Producer({"bootstrap.servers": args.bootstrap_servers})

    coordinator = AbuseCoordinator(MockPlatform(), settings)
    for channel_id in args.channel_id:
        coordinator.monitor_channel(channel_id)
    for item_id in args.item_id:
        coordinator.monitor_item(item_id)
    coordinator.start()

    consumed = 0
    verdicts = 0

    print(f"Abuse detector started  input={args.input_topic}  "
          f"output={args.output_topic}  rate_limit={settings.rate_limit}  "
          f"view_threshold={settings.view_threshold}")

    try:
        while running:
            msg = consumer.poll(1.0)
            if msg is None:
                continue
            if msg.error():
                if msg.error().code() == KafkaError._PARTITION_EOF:
                    continue
                print(f"Consumer error: {msg.error()}", file=sys.stderr)
                continue

            try:
                event = json.loads(msg.value().decode("utf-8"))
                verdict = dispatch(coordinator, event)
            except (json.JSONDecodeError, UnicodeDecodeError, AttributeError) as e:
                print(f"Skipping undecodable event: {e}", file=sys.stderr)
                continue
            except KeyError as e:
                print(f"Skipping event missing field {e}", file=sys.stderr)
                continue
            except ValueError as e:
                print(f"Skipping malformed event: {e}", file=sys.stderr)
                continue
            consumed += 1

            if verdict is not None:
                producer.produce(
                    args.output_topic,
                    value=json.dumps(verdict).encode("utf-8"),
                )
                verdicts += 1

            if consumed % 1000 == 0:
                producer.flush()
                print(f"  ... {consumed} events consumed, {verdicts} verdicts  "
                      f"stats={coordinator.stats()}")
    finally:
        coordinator.stop()
        producer.flush()
        consumer.close()
        print(f"Done. {consumed} events consumed, {verdicts} verdicts produced.")


if __name__ == "__main__":
    main()
