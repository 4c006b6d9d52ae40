"""ActiveMQ queue inspection over the Jolokia JMX-HTTP bridge."""

import json
import logging
import re

from buildhooks.clients.base import ApiClient
from buildhooks.errors import JolokiaError
from buildhooks.models import ApiResponse, QueueFailure, QueueInfo, QueueReport
from buildhooks.settings import BrokerSettings

logger = logging.getLogger(__name__)

_QUEUE_NAME_RE = re.compile(r"destinationName=([^,]+)")

QUEUE_ATTRIBUTES = ["QueueSize", "ConsumerCount", "EnqueueCount", "DequeueCount"]


def queue_mbean(broker_name: str, queue: str = "*") -> str:
    return f"org.apache.activemq:type=Broker,brokerName={broker_name},destinationType=Queue,destinationName={queue}"


def extract_queue_name_from_mbean(mbean_name: str) -> str | None:
    """Return the destinationName value of a queue MBean, or None."""
    match = _QUEUE_NAME_RE.search(mbean_name)
    return match.group(1) if match else None


class ActiveMQClient(ApiClient):
    def __init__(
        self,
        host: str = "localhost",
        port: int = 8161,
        username: str | None = None,
        password: str | None = None,
        scheme: str = "http",
        timeout: float = 30,
    ) -> None:
        auth = (username, password or "") if username else None
        super().__init__(f"{scheme}://{host}:{port}/api/jolokia", auth=auth, timeout=timeout)

    @classmethod
    def from_settings(cls, settings: BrokerSettings) -> "ActiveMQClient":
        return cls(
            host=settings.host,
            port=settings.port,
            username=settings.username,
            password=settings.password.get_secret_value() if settings.password else None,
            scheme=settings.scheme,
        )

    @property
    def jolokia_url(self) -> str:
        return self._base_url

    def _value(self, response: ApiResponse, what: str) -> object:
        """Unwrap a Jolokia reply. Raises JolokiaError on HTTP or Jolokia-level errors."""
        if response.status_code != 200:
            raise JolokiaError(
                response.status_code,
                f"Failed to {what}. HTTP status: {response.status_code}",
            )
        try:
            data = json.loads(response.body)
        except ValueError as exc:
            raise JolokiaError(response.status_code, f"Failed to {what}: invalid JSON ({exc})") from exc
        if not isinstance(data, dict):
            raise JolokiaError(response.status_code, f"Failed to {what}: unexpected reply {data!r}")
        # Jolokia reports request errors inside a 200 reply
        status = data.get("status", 200)
        if status != 200:
            raise JolokiaError(status, f"Failed to {what}: {data.get('error', 'unknown error')}")
        return data.get("value")

    def _queue_names(self, response: ApiResponse) -> list[str]:
        value = self._value(response, "list queues")
        if not isinstance(value, list):
            return []
        names = [extract_queue_name_from_mbean(str(mbean)) for mbean in value]
        return [name for name in names if name]

    def get_all_queue_names(self, broker_name: str = "localhost") -> list[str]:
        """Search queue MBeans with a GET request (pattern in the path)."""
        return self._queue_names(self._execute(f"/search/{queue_mbean(broker_name)}"))

    def get_all_queue_names_with_post(self, broker_name: str = "localhost") -> list[str]:
        """Search queue MBeans with a JSON POST request."""
        body = {"type": "search", "mbean": queue_mbean(broker_name)}
        return self._queue_names(self._execute("", method="POST", body=body))

    def get_all_queue_names_with_auth(self, broker_name: str, username: str, password: str) -> list[str]:
        """Like get_all_queue_names_with_post, with explicit basic-auth credentials."""
        body = {"type": "search", "mbean": queue_mbean(broker_name)}
        return self._queue_names(self._execute("", method="POST", body=body, auth=(username, password)))

    def get_queue_info(self, broker_name: str, queue: str) -> QueueInfo:
        body = {"type": "read", "mbean": queue_mbean(broker_name, queue), "attribute": QUEUE_ATTRIBUTES}
        value = self._value(self._execute("", method="POST", body=body), f"read queue '{queue}'")
        if not isinstance(value, dict):
            raise JolokiaError(200, f"Failed to read queue '{queue}': unexpected value {value!r}")
        return QueueInfo(name=queue, **value)

    def get_detailed_queue_info(self, broker_name: str = "localhost") -> QueueReport:
        """Discover all queues, then read each one.

        Discovery failures raise JolokiaError. A failing read for a single queue
        is logged and reported in QueueReport.failures; the other queues are
        still read.
        """
        queues: list[QueueInfo] = []
        failures: list[QueueFailure] = []
        for name in self.get_all_queue_names_with_post(broker_name):
            try:
                queues.append(self.get_queue_info(broker_name, name))
            except (JolokiaError, ValueError, TypeError) as exc:
                logger.warning("Skipping queue %s: %s", name, exc)
                failures.append(QueueFailure(name=name, error=str(exc)))
        return QueueReport(queues=queues, failures=failures)
