# FILE: lineup_core/oracle.py
"""
Untrusted suggestion oracles.

OracleProposer wraps any callable `propose_quarter(payload) -> dict` with a
bounded, cancellable wait. HttpOracle is such a callable backed by a
suggestion service reachable over HTTP.
"""
from __future__ import annotations
import json
import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from typing import Callable, Mapping, Optional

import httpx

from .errors import OracleError
from .models import QuarterContext, QuarterPlan
from .proposers import parse_proposal

logger = logging.getLogger(__name__)

OracleFn = Callable[[dict], Mapping]


class OracleProposer:
    name = "oracle"

    def __init__(self, oracle: OracleFn, timeout: float = 10.0, log: Optional[logging.Logger] = None):
        if timeout <= 0:
            raise ValueError("timeout must be positive")
        self.oracle = oracle
        self.timeout = timeout
        self.log = log or logger

    def _call(self, payload: dict, quarter: int):
        # one worker per call: a hung oracle must not block the next quarter
        pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix="lineup-oracle")
        future = pool.submit(self.oracle, payload)
        try:
            return future.result(timeout=self.timeout)
        except FutureTimeout as exc:
            future.cancel()
            raise OracleError(quarter, f"oracle timed out after {self.timeout:g}s") from exc
        except httpx.HTTPError as exc:
            raise OracleError(quarter, f"oracle transport error: {exc}") from exc
        except Exception as exc:
            raise OracleError(quarter, f"oracle raised {type(exc).__name__}: {exc}") from exc
        finally:
            pool.shutdown(wait=False)

    def propose(self, ctx: QuarterContext) -> QuarterPlan:
        payload = ctx.to_payload()
        if self.log.isEnabledFor(logging.DEBUG):
            self.log.debug("Oracle request Q%d: %s", ctx.quarter, json.dumps(payload, sort_keys=True))
        raw = self._call(payload, ctx.quarter)
        self.log.debug("Oracle response Q%d: %r", ctx.quarter, raw)
        return parse_proposal(raw, ctx)


class HttpOracle:
    """POSTs the quarter payload as JSON and returns the decoded reply."""

    def __init__(
        self,
        url: str,
        timeout: float = 10.0,
        headers: Optional[Mapping[str, str]] = None,
        client: Optional[httpx.Client] = None,
    ):
        self.url = url
        self._owns_client = client is None
        self.client = client or httpx.Client(timeout=timeout, headers=dict(headers or {}))

    def __call__(self, payload: dict) -> Mapping:
        resp = self.client.post(self.url, json=payload)
        resp.raise_for_status()
        return resp.json()

    def close(self) -> None:
        if self._owns_client:
            self.client.close()

    def __enter__(self) -> "HttpOracle":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
