"""Wires one register terminal: config, store adapter, dispatch, session and services."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from app.trimtime.client.auth_store import AuthStore
from app.trimtime.client.config import ClientConfig, load_config
from app.trimtime.client.dispatch import BackgroundDispatcher
from app.trimtime.client.http_client import HttpClient
from app.trimtime.client.remote_store import HttpRemoteStore
from app.trimtime.client.tracing import TraceContext
from app.trimtime.core.logging import configure_logging, log_json
from app.trimtime.services.cart import Cart
from app.trimtime.services.checkout import SaleCommitter
from app.trimtime.services.scanner import KeystrokeBuffer, RegisterScanner
from app.trimtime.services.session import SessionContext, SessionWatcher
from app.trimtime.services.shop_state import ShopState

logger = logging.getLogger("trimtime.register")


@dataclass
class Register:
    config: ClientConfig
    session: SessionContext
    dispatcher: BackgroundDispatcher
    shop: ShopState
    watcher: SessionWatcher

    def new_cart(self) -> Cart:
        return Cart(self.session)

    def committer(self) -> SaleCommitter:
        return SaleCommitter(self.shop)

    def scanner(self, cart: Cart) -> RegisterScanner:
        return RegisterScanner(cart, self.shop.products)

    def keyboard(self) -> KeystrokeBuffer:
        return KeystrokeBuffer()

    def close(self, timeout: float | None = 10.0) -> None:
        self.watcher.stop()
        if not self.dispatcher.drain(timeout=timeout):
            logger.warning("closing register with remote writes still pending")
        self.dispatcher.shutdown(wait_for_pending=False)


def open_register(
    config: ClientConfig | None = None,
    *,
    auth_store: AuthStore | None = None,
    watch_session: bool = True,
) -> Register:
    configure_logging()
    config = config or load_config()
    http = HttpClient(config, trace=TraceContext())
    remote = HttpRemoteStore(http)
    dispatcher = BackgroundDispatcher(max_workers=config.write_workers)
    session = SessionContext(auth_store or AuthStore())
    session.restore()

    shop = ShopState(remote, dispatcher, session)
    fallbacks = shop.load()
    watcher = SessionWatcher(session)
    if watch_session:
        watcher.start()

    log_json(
        logger,
        {
            "event": "register_opened",
            "env": config.normalized_env,
            "api_base_url": config.api_base_url,
            "operator": session.operator.id if session.operator else None,
            "fallbacks": sorted(name for name, used in fallbacks.items() if used),
        },
    )
    return Register(config=config, session=session, dispatcher=dispatcher, shop=shop, watcher=watcher)
