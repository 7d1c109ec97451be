"""Order ledger load test scenarios.

Three stateful SequentialTaskSet journeys: the full therapy order lifecycle
through completion, an order cancelled part way, and a client paging through
the order listing. OrderLedgerUser weighs them; LedgerWriteFloodUser hammers
the write path.
"""

from locust import HttpUser, SequentialTaskSet, between, constant_pacing, task

from loadtests.data_generators import (
    LIFECYCLE_STATUSES,
    cancellation_point,
    order_data,
    status_update_data,
    unique_order_id,
)
from loadtests.helpers.response import extract_error_detail
from loadtests.helpers.state import BrowseState, OrderState


class _OrderJourney(SequentialTaskSet):
    def on_start(self):
        self.state = OrderState()

    def _create(self):
        payload = order_data()
        with self.client.post(
            "/orders",
            json=payload,
            catch_response=True,
            name="POST /orders",
        ) as resp:
            if resp.status_code == 201:
                self.state.order_id = resp.json()["orderId"]
                self.state.history_length = 1
            else:
                resp.failure(f"Create order failed: {resp.status_code}: {extract_error_detail(resp)}")
                self.interrupt()

    def _move_to(self, status):
        with self.client.put(
            f"/orders/{self.state.order_id}/status",
            json=status_update_data(status),
            catch_response=True,
            name="PUT /orders/{id}/status",
        ) as resp:
            if resp.status_code == 200:
                self.state.current_status = status
                self.state.applied_statuses.append(status)
                self.state.history_length += 1
            else:
                resp.failure(f"Status {status} failed: {resp.status_code}: {extract_error_detail(resp)}")
                self.interrupt()

    def _check_history(self):
        with self.client.get(
            f"/orders/{self.state.order_id}/history",
            catch_response=True,
            name="GET /orders/{id}/history",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"History failed: {resp.status_code}: {extract_error_detail(resp)}")
            elif len(resp.json()) != self.state.history_length:
                resp.failure(f"Expected {self.state.history_length} versions, got {len(resp.json())}")


class OrderFullLifecycleJourney(_OrderJourney):
    """Create -> every lifecycle status in order -> read back.

    The happy path: one creation plus ten status updates, so eleven ledger
    versions for the order.
    """

    @task
    def create_order(self):
        self._create()

    @task
    def walk_lifecycle(self):
        for status in LIFECYCLE_STATUSES:
            self._move_to(status)

    @task
    def read_order(self):
        with self.client.get(
            f"/orders/{self.state.order_id}",
            catch_response=True,
            name="GET /orders/{id}",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Get order failed: {resp.status_code}: {extract_error_detail(resp)}")
            elif resp.json()["currentStatus"] != self.state.current_status:
                resp.failure(f"Stale order: {resp.json()['currentStatus']} != {self.state.current_status}")

    @task
    def read_history(self):
        self._check_history()

    @task
    def done(self):
        self.interrupt()


class OrderCancellationJourney(_OrderJourney):
    """Create -> a few lifecycle statuses -> therapy_cancelled."""

    @task
    def create_order(self):
        self._create()

    @task
    def progress(self):
        for status in LIFECYCLE_STATUSES[: cancellation_point()]:
            self._move_to(status)

    @task
    def cancel(self):
        self._move_to("therapy_cancelled")

    @task
    def read_history(self):
        self._check_history()

    @task
    def done(self):
        self.interrupt()


class OrderBrowseJourney(SequentialTaskSet):
    """Page through the order listing until the ledger runs out of orders."""

    page_size = 20
    max_pages = 10

    def on_start(self):
        self.state = BrowseState()

    @task
    def browse(self):
        while self.state.pages_read < self.max_pages:
            with self.client.get(
                "/orders",
                params={"page_size": self.page_size, "bookmark": self.state.bookmark},
                catch_response=True,
                name="GET /orders",
            ) as resp:
                if resp.status_code != 200:
                    resp.failure(f"List orders failed: {resp.status_code}: {extract_error_detail(resp)}")
                    break
                page = resp.json()
                self.state.pages_read += 1
                self.state.orders_seen += page["metadata"]["fetchedRecordsCount"]
                self.state.bookmark = page["metadata"]["bookmark"]
                if page["metadata"]["fetchedRecordsCount"] < self.page_size:
                    break

    @task
    def probe_missing_order(self):
        with self.client.get(
            f"/orders/{unique_order_id()}/exists",
            catch_response=True,
            name="GET /orders/{id}/exists",
        ) as resp:
            if resp.status_code != 200 or resp.json()["exists"] is not False:
                resp.failure(f"Exists probe failed: {resp.status_code}: {extract_error_detail(resp)}")

    @task
    def done(self):
        self.interrupt()


class OrderLedgerUser(HttpUser):
    """Locust user simulating hospital, manufacturer and logistics traffic.

    Weighted distribution:
    - 50% Full order lifecycle (happy path)
    - 20% Order cancellation
    - 30% Listing walks
    """

    wait_time = between(0.5, 2.0)
    tasks = {
        OrderFullLifecycleJourney: 5,
        OrderCancellationJourney: 2,
        OrderBrowseJourney: 3,
    }


class LedgerWriteFloodUser(HttpUser):
    """Stress test: maximum ledger write throughput.

    Every task writes a fresh order so writers never contend on a key.
    """

    wait_time = constant_pacing(0.1)  # ~10 requests/sec per user

    @task(5)
    def create_order(self):
        self.client.post("/orders", json=order_data(), name="[STRESS] POST /orders")

    @task(2)
    def create_and_request(self):
        payload = order_data()
        resp = self.client.post("/orders", json=payload, name="[STRESS] POST /orders+status")
        if resp.status_code == 201:
            self.client.put(
                f"/orders/{payload['orderId']}/status",
                json=status_update_data("therapy_requested"),
                name="[STRESS] PUT /orders/{id}/status",
            )
