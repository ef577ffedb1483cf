from __future__ import annotations

from dataclasses import dataclass, field

from .activity_feed import ActivityFeed
from .cart import CartManager
from .checkout import CheckoutOrchestrator
from .clients.catalog_client import CatalogClient
from .clients.orders_client import OrdersClient
from .config import ClientConfig, TerminalSettings
from .customer_ledger import CustomerLedgerUpdater, LocalCustomerStore
from .http_client import HttpClient, TraceContext
from .local_store import JsonListFile
from .notifications import NotificationCenter
from .persistence import LocalOrderCache, OrderPersistenceCoordinator
from .receipt import ReceiptPrinter
from .scanner import ScanChannel
from .stock_ledger import CatalogStockLedger


@dataclass
class PosTerminal:
    """One checkout lane: remote clients, local stores and the orchestrator wired together."""

    config: ClientConfig
    settings: TerminalSettings = field(default_factory=TerminalSettings)
    receipt_printer: ReceiptPrinter | None = None
    trace: TraceContext | None = None
    notifications: NotificationCenter = field(default_factory=NotificationCenter)

    def __post_init__(self) -> None:
        self.trace = self.trace or TraceContext()
        self.http = HttpClient(config=self.config, trace=self.trace)
        self.catalog = CatalogStockLedger(self.catalog_client())
        self.order_cache = LocalOrderCache(
            JsonListFile(self.settings.orders_path), limit=self.settings.order_cache_limit
        )
        self.coordinator = OrderPersistenceCoordinator(self.orders_client(), self.order_cache)
        self.customers = LocalCustomerStore(JsonListFile(self.settings.customers_path))
        self.activity = ActivityFeed(JsonListFile(self.settings.activity_path), limit=self.settings.activity_limit)
        self.checkout = CheckoutOrchestrator(
            CartManager(self.catalog),
            self.coordinator,
            tax_rate=self.settings.tax_rate,
            ledger_updater=CustomerLedgerUpdater(self.customers),
            activity_feed=self.activity,
            receipt_printer=self.receipt_printer,
            notifications=self.notifications,
        )

    def catalog_client(self) -> CatalogClient:
        return CatalogClient(http=self.http, access_token=self.config.api_token, terminal_id=self.config.terminal_id)

    def orders_client(self) -> OrdersClient:
        return OrdersClient(http=self.http, access_token=self.config.api_token, terminal_id=self.config.terminal_id)

    def scan_channel(self) -> ScanChannel:
        return ScanChannel(cooldown_seconds=self.settings.scan_cooldown_seconds)


def build_terminal(
    config: ClientConfig,
    settings: TerminalSettings | None = None,
    receipt_printer: ReceiptPrinter | None = None,
) -> PosTerminal:
    return PosTerminal(config=config, settings=settings or TerminalSettings(), receipt_printer=receipt_printer)
