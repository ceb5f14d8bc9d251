"""
JSON kline cache.

Raw exchange rows are stored under <cache_dir>/<domain>/<symbol>.json,
where domain is the host of the exchange base URL. Other exchange
documents (e.g. Binance exchangeInfo) live in a named folder below the
domain.
"""
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
from urllib.parse import urlparse

from ..shared.defaults import KLINE_CACHE_DIR

logger = logging.getLogger(__name__)


class KlineCache:
    """Reads and writes raw exchange responses as JSON files."""

    def __init__(self, cache_dir: Optional[Union[str, Path]] = None):
        self.cache_dir = Path(cache_dir) if cache_dir is not None else Path(KLINE_CACHE_DIR)

    def path_for(self, base_url: str, symbol: str, folder: Optional[str] = None) -> Path:
        domain = urlparse(base_url).hostname or "local"
        directory = self.cache_dir / domain
        if folder:
            directory = directory / folder
        return directory / f"{symbol.lower()}.json"

    def _read(self, path: Path) -> Any:
        with open(path, "r") as f:
            return json.load(f)

    def load(self, base_url: str, symbol: str) -> List[Any]:
        """
        Load cached rows.

        Raises:
            FileNotFoundError: If nothing is cached for this source and symbol
            ValueError: If the cache file is not a JSON list
        """
        path = self.path_for(base_url, symbol)
        rows = self._read(path)
        if not isinstance(rows, list):
            raise ValueError(f"Kline cache must contain a JSON list: {path}")
        logger.debug("Loaded %d cached rows from %s", len(rows), path)
        return rows

    def load_document(self, base_url: str, symbol: str, folder: str) -> Dict[str, Any]:
        """
        Load a cached JSON object stored under `folder`.

        Raises:
            FileNotFoundError: If nothing is cached
            ValueError: If the cache file is not a JSON object
        """
        path = self.path_for(base_url, symbol, folder)
        document = self._read(path)
        if not isinstance(document, dict):
            raise ValueError(f"Cached {folder} must contain a JSON object: {path}")
        logger.debug("Loaded cached %s from %s", folder, path)
        return document

    def save(self, base_url: str, symbol: str, data: Any, folder: Optional[str] = None) -> Path:
        path = self.path_for(base_url, symbol, folder)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(data, f)
        if isinstance(data, list):
            logger.info("Cached %d rows to %s", len(data), path)
        else:
            logger.info("Cached %s to %s", folder or "document", path)
        return path
