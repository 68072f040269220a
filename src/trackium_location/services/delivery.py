"""
Delivery of resolved locations to the remote node.

Two strategies are available and can be chained in configuration order:

- ``direct``: POST each payload to ``/api/location/update``.
- ``keypair``: append payloads to a queue kept in the node's key-value
  store, using ``keypair`` commands sent to ``POST /``.

The :class:`DeliveryClient` owns the never-discard rule: a payload is
written to the local pending queue before any send and removed only once
the remote node has acknowledged it.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol, Sequence

import requests  # type: ignore

from ..api import APIClient
from ..core import constants
from ..core.exceptions import DeliveryError, PersistenceError
from ..models import PendingPayload
from .store import LocalStore


class DeliveryStrategy(Protocol):
    """Structural type satisfied by every delivery strategy."""

    name: str

    def send(self, payloads: Sequence[PendingPayload]) -> int:
        """
        Send payloads in order.

        Returns:
            Number of leading payloads acknowledged (all of them on success)

        Raises:
            DeliveryError: With ``acknowledged`` set to the accepted prefix length
        """
        ...


class DirectDelivery:
    """POST every payload to the node's location update endpoint."""

    name = constants.STRATEGY_DIRECT

    def __init__(
        self,
        client: APIClient,
        endpoint: str = constants.LOCATION_UPDATE_ENDPOINT,
        logger: Optional[logging.Logger] = None
    ):
        self.client = client
        self.endpoint = endpoint
        self.logger = logger or logging.getLogger(__name__)

    def send(self, payloads: Sequence[PendingPayload]) -> int:
        for index, payload in enumerate(payloads):
            try:
                response = self.client.post_response(self.endpoint, payload.to_dict())
            except requests.exceptions.RequestException as e:
                raise DeliveryError(f"Connection to node failed: {e}", acknowledged=index)

            # Only 200 counts as an acknowledgement
            if response.status_code != 200:
                raise DeliveryError(
                    f"Upload failed: HTTP {response.status_code} {response.text[:200]}",
                    acknowledged=index
                )

            self.logger.debug(f"Location update {payload.timestamp} accepted by node")

        return len(payloads)


# Error texts the node uses when a keypair key has never been set
MISSING_KEY_MARKERS = ("not found", "does not exist", "no such key")


class KeypairQueueDelivery:
    """
    Accumulate payloads in a queue stored under a key on the remote node.

    The node is driven with commands such as::

        keypair action:get key:pending_location_updates
        keypair action:set key:pending_location_updates value:"[...]"

    The set value is the serialized queue, escaped as a JSON string.
    Delivery is all-or-nothing: either the whole batch was written back
    or nothing was acknowledged.
    """

    name = constants.STRATEGY_KEYPAIR

    def __init__(
        self,
        client: APIClient,
        key: str = constants.PENDING_QUEUE_KEY,
        logger: Optional[logging.Logger] = None
    ):
        self.client = client
        self.key = key
        self.logger = logger or logging.getLogger(__name__)

    def _post_command(self, command: str) -> Dict[str, Any]:
        """Send one command to the node and return its decoded reply."""
        action = command.split()[1]
        try:
            result = self.client.post_text("/", command)
        except requests.exceptions.JSONDecodeError as e:
            raise DeliveryError(f"Malformed reply to keypair {action}: {e}")
        except requests.exceptions.RequestException as e:
            raise DeliveryError(f"Keypair {action} failed: {e}")
        except ValueError as e:
            raise DeliveryError(f"Malformed reply to keypair {action}: {e}")

        if not isinstance(result, dict):
            raise DeliveryError(f"Malformed reply to keypair {action}: not a JSON object")
        return result

    @staticmethod
    def _rejection_reason(result: Dict[str, Any]) -> str:
        return str(result.get("error") or result.get("message") or "status false")

    def _run_command(self, command: str) -> Dict[str, Any]:
        """Send one command and require ``status: true``."""
        result = self._post_command(command)
        if not result.get("status"):
            action = command.split()[1]
            raise DeliveryError(
                f"Keypair {action} rejected by node: {self._rejection_reason(result)}"
            )
        return result

    def fetch_remote_queue(self) -> List[Any]:
        """
        Read the queue currently stored on the node.

        A ``get`` rejected because the key does not exist yet is an empty
        queue. Any other rejection is an error, so an unreadable remote
        queue is never overwritten.

        Returns:
            Stored entries (empty when the key holds no value yet)

        Raises:
            DeliveryError: If the node cannot be reached or the value is not a list
        """
        result = self._post_command(f"keypair action:get key:{self.key}")
        if not result.get("status"):
            reason = self._rejection_reason(result)
            if any(marker in reason.lower() for marker in MISSING_KEY_MARKERS):
                self.logger.debug(f"Remote key {self.key} not set yet: {reason}")
                return []
            raise DeliveryError(f"Keypair get rejected by node: {reason}")

        response = result.get("response")
        value = response.get("value") if isinstance(response, dict) else None
        if value is None or value == "":
            return []

        if isinstance(value, str):
            try:
                value = json.loads(value)
            except ValueError as e:
                raise DeliveryError(f"Remote pending queue is not valid JSON: {e}")

        if not isinstance(value, list):
            raise DeliveryError("Remote pending queue is not a JSON list")
        return value

    def send(self, payloads: Sequence[PendingPayload]) -> int:
        if not payloads:
            return 0

        queue = self.fetch_remote_queue()
        queue.extend(payload.to_dict() for payload in payloads)
        blob = json.dumps(queue)

        self._run_command(f"keypair action:set key:{self.key} value:{json.dumps(blob)}")
        self.logger.debug(f"Remote pending queue now holds {len(queue)} entries")
        return len(payloads)


STRATEGY_CLASSES = {
    constants.STRATEGY_DIRECT: DirectDelivery,
    constants.STRATEGY_KEYPAIR: KeypairQueueDelivery,
}


def build_strategies(
    client: APIClient,
    names: Sequence[str],
    logger: Optional[logging.Logger] = None
) -> List[DeliveryStrategy]:
    """
    Instantiate delivery strategies in the configured order.

    Raises:
        ValueError: On an unknown strategy name
    """
    strategies: List[DeliveryStrategy] = []
    for name in names:
        try:
            strategy_class = STRATEGY_CLASSES[name]
        except KeyError:
            raise ValueError(f"Unknown delivery strategy: {name}")
        strategies.append(strategy_class(client, logger=logger))
    return strategies


@dataclass(frozen=True)
class DeliveryResult:
    """Outcome of one delivery attempt."""

    sent: int
    remaining: int
    delivered_current: bool


class DeliveryClient:
    """Send pending payloads through the configured strategies."""

    def __init__(
        self,
        store: LocalStore,
        strategies: Sequence[DeliveryStrategy],
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize delivery client.

        Args:
            store: Local store holding the pending queue
            strategies: Strategies tried in order for whatever is still unacknowledged
            logger: Logger instance
        """
        self.store = store
        self.strategies = list(strategies)
        self.logger = logger or logging.getLogger(__name__)
        # Payloads that could not be written to the local queue yet
        self._carry_over: List[PendingPayload] = []

    @property
    def unsaved(self) -> List[PendingPayload]:
        """Payloads held in memory because the local queue was not writable."""
        return list(self._carry_over)

    def deliver(self, payload: PendingPayload) -> DeliveryResult:
        """
        Queue one payload and send everything pending.

        Never raises for delivery or persistence failures; they are logged
        and the payloads stay queued for the next cycle.
        """
        return self._deliver(payload)

    def flush(self) -> DeliveryResult:
        """Send everything pending without adding a new payload."""
        return self._deliver(None)

    def _deliver(self, new_payload: Optional[PendingPayload]) -> DeliveryResult:
        if new_payload is not None:
            self._carry_over.append(new_payload)

        stored = self._load_stored()
        queue = (stored or []) + self._carry_over
        if stored is not None and self._carry_over and self._save(queue):
            stored, self._carry_over = queue, []
        durable = len(stored) if stored is not None else 0

        acknowledged = self._send(queue)
        remaining = queue[acknowledged:]

        if stored is not None and acknowledged and self._save(remaining):
            self._carry_over = []
        else:
            # Keep whatever is neither acknowledged nor on disk
            self._carry_over = queue[max(acknowledged, durable):]

        if remaining:
            self.logger.warning(
                f"{len(remaining)} location update(s) pending, will retry next cycle"
            )
        elif queue:
            self.logger.info(f"Delivered {acknowledged} location update(s) to node")

        return DeliveryResult(
            sent=acknowledged,
            remaining=len(remaining),
            delivered_current=new_payload is not None and not remaining,
        )

    def _send(self, queue: List[PendingPayload]) -> int:
        """Try each strategy on the unacknowledged tail; return the acknowledged count."""
        acknowledged = 0
        for strategy in self.strategies:
            if acknowledged >= len(queue):
                break
            try:
                acknowledged += strategy.send(queue[acknowledged:])
            except DeliveryError as e:
                acknowledged += e.acknowledged
                self.logger.error(f"Delivery via {strategy.name} failed: {e}")
        return acknowledged

    def _load_stored(self) -> Optional[List[PendingPayload]]:
        try:
            return self.store.load_pending_queue()
        except PersistenceError as e:
            self.logger.error(str(e))
            return None

    def _save(self, entries: List[PendingPayload]) -> bool:
        try:
            self.store.save_pending_queue(entries)
            return True
        except PersistenceError as e:
            self.logger.error(f"{e}; keeping unsaved updates in memory")
            return False
