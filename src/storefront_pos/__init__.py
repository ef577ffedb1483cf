from .activity_feed import ActivityFeed
from .cart import CartManager, StockViolation
from .checkout import CheckoutOrchestrator, CheckoutOutcome
from .checkout_state import CheckoutActionAvailability, CheckoutState, checkout_action_availability
from .config import ClientConfig, ConfigError, TerminalSettings, load_config, load_terminal_settings
from .customer_ledger import CustomerLedgerUpdater, LocalCustomerStore, loyalty_points_for
from .exceptions import (
    ActivityFeedError,
    ApiError,
    CartLineNotFoundError,
    CheckoutStateError,
    EmptyCartError,
    LedgerUpdateFailedError,
    OrderPersistenceError,
    OutOfStockError,
    PaymentFieldInvalidError,
    PosError,
    ProductNotFoundError,
    RemoteCommitFailedError,
    StockLimitExceededError,
    TransportError,
)
from .http_client import HttpClient, TraceContext
from .local_store import JsonListFile
from .models_cart import AddResult, CartLine
from .models_catalog import ProductRef
from .models_customers import CustomerLedgerEntry
from .models_orders import (
    CardPayment,
    CashPayment,
    CustomerRef,
    Order,
    OrderHandle,
    OrderLine,
    PaymentSelection,
    UpiPayment,
)
from .notifications import Notice, NotificationCenter
from .persistence import CommitResult, LocalOrderCache, OrderPersistenceCoordinator
from .pricing import PriceBreakdown, present, price
from .receipt import BillData, ReceiptPrinter, build_bill_data, reprint_last_bill
from .scanner import ScanChannel
from .stock_ledger import CatalogStockLedger, InMemoryStockLedger, StockLedgerView
from .terminal import PosTerminal, build_terminal
