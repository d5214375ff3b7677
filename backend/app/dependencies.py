"""FastAPI dependencies: service wiring and auth."""

import logging
import os
import signal
from collections.abc import Callable
from dataclasses import dataclass, field

from fastapi import Header, HTTPException, Request

from config import Settings, get_settings
from pacrewards.services.booster_engine import BoosterEngine
from pacrewards.services.claim_workflow import ClaimWorkflow
from pacrewards.services.interfaces import NetworkClient, PaymentGateway, SocialClient, Wallet
from pacrewards.services.locks import KeyedLock
from pacrewards.services.network_info import NetworkInfoCache
from pacrewards.services.nowpayments import NowPaymentsClient
from pacrewards.services.record_store import RecordStore
from pacrewards.services.twitter_client import TwitterClient
from pacrewards.services.validator_directory import ValidatorDirectory

logger: logging.Logger = logging.getLogger(__name__)


def _terminate(exc: BaseException) -> None:
    """Default reaction to an unrecoverable error: stop the process."""
    logger.critical("Terminating after unrecoverable error: %s", exc)
    os.kill(os.getpid(), signal.SIGTERM)


@dataclass
class Services:
    store: RecordStore
    network_cache: NetworkInfoCache
    claims: ClaimWorkflow
    booster: BoosterEngine
    on_unrecoverable: Callable[[BaseException], None] = field(default=_terminate)


def build_services(
    network: NetworkClient,
    wallet: Wallet,
    social: SocialClient | None = None,
    payments: PaymentGateway | None = None,
    store: RecordStore | None = None,
    settings: Settings | None = None,
) -> Services:
    """Wire one store, one snapshot cache and one lock table into both workflows."""
    settings = settings or get_settings()
    store = store or RecordStore.open()
    cache: NetworkInfoCache = NetworkInfoCache(network, settings.network.refresh_interval)
    directory: ValidatorDirectory = ValidatorDirectory(cache)
    locks: KeyedLock = KeyedLock()
    return Services(
        store=store,
        network_cache=cache,
        claims=ClaimWorkflow(store, network, wallet, directory, settings.program, locks),
        booster=BoosterEngine(
            store,
            network,
            wallet,
            social or TwitterClient(settings.twitter),
            payments or NowPaymentsClient(settings.nowpayments),
            directory,
            settings.program,
            locks,
        ),
    )


def get_services(request: Request) -> Services:
    return request.app.state.services


def get_api_key(x_api_key: str = Header(default="")) -> str:
    """Validate API key on operator endpoints."""
    expected: str | None = get_settings().api_key
    if not expected:
        return ""  # auth disabled when no key configured
    if x_api_key != expected:
        raise HTTPException(status_code=401, detail="Invalid or missing API key")
    return x_api_key
