"""
Token metadata directory.

Holds a mint -> TokenMetadata mapping built from the bulk token list. The
mapping is rebuilt off to the side and swapped in with a single assignment,
so readers always see either the previous complete mapping or the new one.
Refreshes run in a background task and never block request handling.
"""

import asyncio
import time
from typing import Any, Dict, Iterable, Optional

from wallet_proxy.clients.jupiter_client import JupiterClient
from wallet_proxy.config import MetadataConfig
from wallet_proxy.constants import SOL_MINT, SOL_NAME, SOL_SYMBOL
from wallet_proxy.models.token import TokenMetadata
from wallet_proxy.services.base_service import BaseService

# Field candidates across token-list versions, first match wins
MINT_FIELDS = ("address", "id", "mint")
SYMBOL_FIELDS = ("symbol",)
NAME_FIELDS = ("name",)
LOGO_FIELDS = ("logoURI", "icon", "logoUri", "logo")


def _first_str(entry: Dict[str, Any], fields: Iterable[str]) -> str:
    for field_name in fields:
        value = entry.get(field_name)
        if isinstance(value, str) and value:
            return value
    return ""


class TokenMetadataDirectory(BaseService):
    """Read-mostly directory of token display metadata."""

    def __init__(self, client: JupiterClient, config: Optional[MetadataConfig] = None):
        """
        Initialize the directory with an empty mapping.

        Args:
            client: Client used to download the token list
            config: Metadata configuration
        """
        super().__init__()
        self.client = client
        self.config = config or MetadataConfig()
        self._tokens: Dict[str, TokenMetadata] = {}
        self.loaded_at: Optional[float] = None
        self._refresh_task: Optional[asyncio.Task] = None

    @property
    def size(self) -> int:
        return len(self._tokens)

    def default_logo(self, mint: str) -> str:
        """Deterministic CDN logo URL for a mint."""
        return self.config.logo_template.format(mint=mint)

    def _build_mapping(self, token_list: Iterable[Any]) -> Dict[str, TokenMetadata]:
        mapping: Dict[str, TokenMetadata] = {}
        for entry in token_list:
            if not isinstance(entry, dict):
                continue
            mint = _first_str(entry, MINT_FIELDS)
            if not mint:
                continue
            mapping[mint] = TokenMetadata(
                symbol=_first_str(entry, SYMBOL_FIELDS),
                name=_first_str(entry, NAME_FIELDS),
                logo_uri=_first_str(entry, LOGO_FIELDS),
            )
        return mapping

    async def refresh(self) -> bool:
        """
        Download the token list and swap in a freshly built mapping.

        On failure, or when the list comes back empty, the previous mapping
        is kept.

        Returns:
            True if a new mapping was installed
        """
        try:
            async with self.log_timing("token list refresh"):
                token_list = await self.client.get_token_list()
            mapping = self._build_mapping(token_list)
        except Exception as e:
            self.logger.warning(f"Token list refresh failed, keeping {self.size} entries: {str(e)}")
            return False

        if not mapping:
            self.logger.warning(f"Token list was empty, keeping {self.size} entries")
            return False

        self._tokens = mapping
        self.loaded_at = time.time()
        self.logger.info(f"Token directory loaded with {len(mapping)} tokens")
        return True

    def lookup(self, mint: str) -> TokenMetadata:
        """
        Get display metadata for a mint. Never fails.

        Returns:
            The known metadata, or empty fields with the default logo on a miss
        """
        metadata = self._tokens.get(mint)
        if metadata is None:
            if mint == SOL_MINT:
                return TokenMetadata(symbol=SOL_SYMBOL, name=SOL_NAME, logo_uri=self.default_logo(mint))
            return TokenMetadata(logo_uri=self.default_logo(mint))
        if not metadata.logo_uri:
            return metadata.model_copy(update={"logo_uri": self.default_logo(mint)})
        return metadata

    def lookup_many(self, mints: Iterable[str]) -> Dict[str, TokenMetadata]:
        """Look up several mints against one consistent mapping."""
        return {mint: self.lookup(mint) for mint in mints}

    async def _refresh_loop(self) -> None:
        while True:
            await self.refresh()
            await asyncio.sleep(self.config.refresh_interval)

    def start(self) -> None:
        """Start the background refresh task (first refresh runs immediately)."""
        if self._refresh_task is None or self._refresh_task.done():
            self._refresh_task = asyncio.create_task(self._refresh_loop())
            self.logger.info("Token directory refresher started")

    async def stop(self) -> None:
        """Stop the background refresh task."""
        if self._refresh_task is not None and not self._refresh_task.done():
            self._refresh_task.cancel()
            try:
                await self._refresh_task
            except asyncio.CancelledError:
                pass
        self._refresh_task = None
