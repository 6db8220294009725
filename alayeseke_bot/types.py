from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    import aiohttp
    import logging

    from .addresses import AddressClassifier
    from .config import Config
    from .lookup import LookupTableIndex
    from .report import ReportAggregator
    from .vybe import VybeClient


@dataclass
class CommandRequest:
    name: str
    raw_args: str
    subject: str
    args: List[str] = field(default_factory=list)
    address: Optional[str] = None
    quote_address: Optional[str] = None
    resolution: Optional[str] = None
    days: Optional[int] = None
    filter_key: Optional[str] = None


@dataclass
class AppContext:
    config: "Config"
    logger: "logging.Logger"
    session: "aiohttp.ClientSession"
    client: "VybeClient"
    classifier: "AddressClassifier"
    lookup: "LookupTableIndex"
    aggregator: "ReportAggregator"
