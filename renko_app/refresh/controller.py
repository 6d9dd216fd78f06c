# renko_app/refresh/controller.py
"""
Rafraîchissement périodique du graphique Renko pour UN actif à la fois.

Machine d'états : IDLE -> FETCHING -> READY | FAILED, puis retour en FETCHING
à chaque tick du timer. CLOSED est terminal.

Chaque requête capture (génération, séquence). Au retour, le résultat n'est
appliqué que si la génération est toujours celle de l'actif courant et si la
séquence est plus récente que la dernière appliquée. Changer d'actif, désélectionner
ou fermer incrémente la génération : les réponses en vol sont ignorées.

Les fetchs tournent en parallèle (FETCH_WORKERS) : une requête bloquée sur
l'ancien actif ne retarde pas celle du nouveau. Sans `dispatch`, la fin de
fetch s'exécute sur le thread de l'executor ; un RLock sérialise alors ces
callbacks avec les commandes, vérification de génération et publication comprises.
"""
from __future__ import annotations

import functools
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, List, Optional, Protocol, Sequence

from renko_app.chat.sentiment_service_groq import require_market_key
from renko_app.config import FETCH_WORKERS, NO_MARKET_KEY, REFRESH_INTERVAL_MS
from renko_app.data.models import Bar, ChartState, RefreshPhase, SentimentResult
from renko_app.errors import NoMarketKey, UpstreamUnavailable
from renko_app.indicators.renko import RenkoEngine

log = logging.getLogger(__name__)

FetchBars = Callable[[str], Sequence[Bar]]
Listener = Callable[[ChartState], None]


class Timer(Protocol):
    def start(self, interval_ms: int, callback: Callable[[], None]) -> None: ...
    def stop(self) -> None: ...


@dataclass(frozen=True)
class RequestToken:
    generation: int
    seq: int
    asset_id: str


def _inline(fn: Callable[[], None]) -> None:
    fn()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _locked(method):
    """Commandes et fins de fetch passent une par une (dispatch inline = thread de l'executor)."""
    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        with self._lock:
            return method(self, *args, **kwargs)
    return wrapper


class RefreshController:
    def __init__(
        self,
        fetch_bars: FetchBars,
        timer: Timer,
        *,
        submit: Optional[Callable[..., Future]] = None,
        dispatch: Callable[[Callable[[], None]], None] = _inline,
        clock: Callable[[], datetime] = _utcnow,
        interval_ms: int = REFRESH_INTERVAL_MS,
        engine: Optional[RenkoEngine] = None,
        no_market_key: str = NO_MARKET_KEY,
    ):
        self._lock = threading.RLock()
        self._fetch_bars = fetch_bars
        self._timer = timer
        self._executor: Optional[ThreadPoolExecutor] = None
        if submit is None:
            self._executor = ThreadPoolExecutor(max_workers=FETCH_WORKERS, thread_name_prefix="ohlc")
            submit = self._executor.submit
        self._submit = submit
        self._dispatch = dispatch
        self._clock = clock
        self.interval_ms = interval_ms
        self.engine = engine or RenkoEngine()
        self.no_market_key = no_market_key

        self._generation = 0
        self._seq = 0
        self._applied_seq = 0
        self._pending: List[Future] = []
        self._state = ChartState()
        self._listeners: List[Listener] = []

    # ---------- lecture ----------
    @property
    def state(self) -> ChartState:
        return self._state

    @property
    def phase(self) -> RefreshPhase:
        return self._state.phase

    @property
    def generation(self) -> int:
        return self._generation

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener) if listener in self._listeners else None

    # ---------- commandes ----------
    def select_from_classification(self, result: SentimentResult, requested_name: str) -> Optional[str]:
        """Point d'entrée après la classification. Renvoie l'assetId suivi, ou None."""
        if self.phase is RefreshPhase.CLOSED:
            return None
        try:
            asset_id = require_market_key(result, requested_name, self.no_market_key)
        except NoMarketKey:
            log.info("no market key for %r; sentiment only", requested_name)
            self.deselect(message=(f'No real-time market data found for "{requested_name}". '
                                   "The sentiment analysis is still available."))
            return None
        self.select_asset(asset_id, requested_name)
        return asset_id

    @_locked
    def select_asset(self, asset_id: str, requested_name: Optional[str] = None) -> None:
        if self.phase is RefreshPhase.CLOSED:
            log.debug("select_asset(%s) ignored: controller closed", asset_id)
            return
        self._invalidate()
        log.info("asset selected: %s (%s)", asset_id, requested_name or asset_id)
        self._publish(ChartState(
            phase=RefreshPhase.FETCHING,
            asset_id=asset_id,
            requested_name=requested_name or asset_id,
        ))
        self._issue()
        self._timer.start(self.interval_ms, self.refresh)

    @_locked
    def refresh(self) -> None:
        """Tick du timer (ou refresh manuel) : relance un fetch pour l'actif courant."""
        if self.phase in (RefreshPhase.IDLE, RefreshPhase.CLOSED) or not self._state.asset_id:
            return
        self._publish(self._state.model_copy(update={"phase": RefreshPhase.FETCHING}))
        self._issue()

    @_locked
    def deselect(self, message: Optional[str] = None) -> None:
        if self.phase is RefreshPhase.CLOSED:
            return
        self._invalidate()
        self._publish(ChartState(phase=RefreshPhase.IDLE, message=message))

    @_locked
    def close(self) -> None:
        """Arrêt définitif (vue détruite) : timer coupé, réponses en vol ignorées."""
        if self.phase is RefreshPhase.CLOSED:
            return
        self._invalidate()
        self._publish(ChartState(phase=RefreshPhase.CLOSED))
        self._listeners.clear()
        if self._executor is not None:
            self._executor.shutdown(wait=False, cancel_futures=True)

    # ---------- interne ----------
    def _invalidate(self) -> None:
        self._timer.stop()
        self._generation += 1
        self._seq = 0
        self._applied_seq = 0
        pending, self._pending = self._pending, []
        for fut in pending:
            fut.cancel()
        self.engine.clear()

    def _issue(self) -> None:
        self._seq += 1
        token = RequestToken(self._generation, self._seq, self._state.asset_id)
        log.debug("fetch issued %s", token)
        fut = self._submit(self._fetch_bars, token.asset_id)
        self._pending.append(fut)
        fut.add_done_callback(lambda f: self._dispatch(lambda: self._on_done(token, f)))

    @_locked
    def _on_done(self, token: RequestToken, fut: Future) -> None:
        if fut in self._pending:
            self._pending.remove(fut)
        if token.generation != self._generation or self.phase is RefreshPhase.CLOSED:
            log.debug("stale result dropped: %s (live generation=%d)", token, self._generation)
            return
        if token.seq <= self._applied_seq:
            log.debug("out-of-order result dropped: %s (applied=%d)", token, self._applied_seq)
            return
        self._applied_seq = token.seq

        try:
            bars = list(fut.result())
        except UpstreamUnavailable as e:
            self._fail(token, e)
            return
        except Exception as e:
            log.exception("unexpected fetch failure for %s", token.asset_id)
            self._fail(token, e)
            return

        result = self.engine.set_history(bars)
        log.info("%s: %d bars -> %d bricks (size=%s)", token.asset_id, len(bars), len(result.bricks), result.brick_size)
        self._publish(ChartState(
            phase=RefreshPhase.READY,
            asset_id=token.asset_id,
            requested_name=self._state.requested_name,
            bars=bars,
            result=result,
            last_refreshed_at=self._clock(),
        ))

    def _fail(self, token: RequestToken, err: Exception) -> None:
        name = self._state.requested_name or token.asset_id
        log.warning("chart data unavailable for %s: %s", token.asset_id, err)
        self.engine.clear()
        # le timer reste armé : le prochain tick retentera
        self._publish(ChartState(
            phase=RefreshPhase.FAILED,
            asset_id=token.asset_id,
            requested_name=name,
            message=f'Could not load chart data for "{name}". Check the asset name.',
        ))

    def _publish(self, state: ChartState) -> None:
        self._state = state
        for listener in list(self._listeners):
            listener(state)
