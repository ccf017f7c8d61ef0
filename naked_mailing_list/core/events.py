"""
Lifecycle event bus.

Stores and entities fire named events (``pre_insert_subscriber``,
``subscriber_post_update`` ...) through an EventBus that is created once per
application and injected into them. Each bus owns its own blinker namespace,
so listeners registered on one app never see another app's events.

Listeners receive the bus as sender plus the event payload as keyword
arguments::

    def on_created(sender, created, args):
        ...

    events.connect('subscriber_post_create', on_created)
"""

import logging

from blinker import Namespace

logger = logging.getLogger(__name__)


class EventBus:
    """Named lifecycle notifications backed by blinker signals"""

    def __init__(self):
        self._namespace = Namespace()

    def signal(self, name):
        return self._namespace.signal(name)

    def connect(self, name, receiver):
        """Register a listener. Held strongly, so lambdas and closures stay alive."""
        self.signal(name).connect(receiver, sender=self, weak=False)
        return receiver

    def disconnect(self, name, receiver):
        self.signal(name).disconnect(receiver, sender=self)

    def fire(self, name, **payload):
        """
        Call every listener of ``name`` in registration order.

        A listener that raises is logged and skipped; the operation that fired
        the event carries on.
        """
        sig = self._namespace.get(name)
        if sig is None or not sig.receivers:
            return
        for receiver in list(sig.receivers_for(self)):
            try:
                receiver(self, **payload)
            except Exception as e:
                logger.error(f"Listener {getattr(receiver, '__name__', receiver)!r} failed on {name}: {e}")
