"""
Hub de suscripciones en vivo

Los modelos marcados con LiveCollectionMixin declaran sus tópicos
(scope, colección). Los eventos de sesión juntan los tópicos tocados en cada
flush y los publican solo cuando la transacción hace commit; un rollback
los descarta.
"""
import asyncio
import logging
import threading
from collections import defaultdict
from typing import Dict, Iterable, Set, Tuple

from sqlalchemy import event

from app.common.mixins import LiveCollectionMixin

logger = logging.getLogger(__name__)

Topic = Tuple[str, str]

PENDING_TOPICS_KEY = "live_topics"


class Subscription:
    """Cola de eventos de un suscriptor, atada al event loop que la creó."""

    def __init__(self, topic: Topic):
        self.topic = topic
        self.loop = asyncio.get_running_loop()
        self.queue: asyncio.Queue = asyncio.Queue()

    def notify(self, topic: Topic) -> None:
        self.loop.call_soon_threadsafe(self.queue.put_nowait, topic)

    def drain(self) -> None:
        while not self.queue.empty():
            self.queue.get_nowait()


class LiveQueryHub:
    """Registro de suscriptores por tópico. Se puede publicar desde cualquier hilo."""

    def __init__(self):
        self._lock = threading.Lock()
        self._subscribers: Dict[Topic, Set[Subscription]] = defaultdict(set)

    def subscribe(self, topic: Topic) -> Subscription:
        subscription = Subscription(topic)
        with self._lock:
            self._subscribers[topic].add(subscription)
        logger.debug(f"Live subscription added for {topic}")
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            subscribers = self._subscribers.get(subscription.topic)
            if subscribers is None:
                return
            subscribers.discard(subscription)
            if not subscribers:
                del self._subscribers[subscription.topic]
        logger.debug(f"Live subscription removed for {subscription.topic}")

    def subscriber_count(self, topic: Topic) -> int:
        with self._lock:
            return len(self._subscribers.get(topic, ()))

    def publish(self, topics: Iterable[Topic]) -> None:
        for topic in topics:
            with self._lock:
                subscribers = list(self._subscribers.get(topic, ()))
            for subscription in subscribers:
                try:
                    subscription.notify(topic)
                except RuntimeError as e:
                    # el loop del suscriptor ya se cerró
                    logger.warning(f"Dropping live subscription for {topic}: {e}")
                    self.unsubscribe(subscription)


hub = LiveQueryHub()


def _collect_topics(session, flush_context) -> None:
    pending = session.info.setdefault(PENDING_TOPICS_KEY, set())
    for instance in list(session.new) + list(session.dirty) + list(session.deleted):
        if isinstance(instance, LiveCollectionMixin):
            pending.update(instance.live_topics())


def _publish_topics(session) -> None:
    topics = session.info.pop(PENDING_TOPICS_KEY, None)
    if topics:
        hub.publish(topics)


def _discard_topics(session) -> None:
    session.info.pop(PENDING_TOPICS_KEY, None)


def install_session_events(session_factory) -> None:
    """Conectar los eventos de sesión que alimentan al hub."""
    if not event.contains(session_factory, "after_flush", _collect_topics):
        event.listen(session_factory, "after_flush", _collect_topics)
        event.listen(session_factory, "after_commit", _publish_topics)
        event.listen(session_factory, "after_rollback", _discard_topics)
