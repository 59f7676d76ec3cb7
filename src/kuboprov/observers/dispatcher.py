# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kuboprov/observers/dispatcher.py
from __future__ import annotations
import logging
from dataclasses import replace
from typing import List, Optional
from .events import BaseEvent, utc_timestamp

log = logging.getLogger("kuboprov")


class EventBus:
    def __init__(self, observers: Optional[List] = None):
        self._observers = observers or []

    def emit(self, event: BaseEvent) -> None:
        # ctx dicts are built once per run; the event time is the emit time
        event = replace(event, ts=utc_timestamp())
        for ob in self._observers:
            try:
                ob.notify(event)
            except Exception as exc:
                # observers must not break a provisioning run
                log.debug("observer %s failed on %s: %s", type(ob).__name__, type(event).__name__, exc)
