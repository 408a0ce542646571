"""
Balance fetcher.

Reads a wallet's native SOL balance and its token accounts under each
supported token program, concurrently. Every sub-fetch fails independently:
a failed native lookup counts as zero, a failed program lookup as no
accounts, and the failure is reported in ``WalletBalances.warnings``.
"""

import asyncio
import math
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError

from wallet_proxy.clients.rpc_client import SolanaRpcClient
from wallet_proxy.config import SolanaConfig
from wallet_proxy.constants import LAMPORTS_PER_SOL, TOKEN_2022_PROGRAM_ID, TOKEN_PROGRAM_ID
from wallet_proxy.models.token import BalanceEntry, WalletBalances
from wallet_proxy.services.base_service import BaseService

PROGRAM_LABELS = {
    TOKEN_PROGRAM_ID: "spl-token",
    TOKEN_2022_PROGRAM_ID: "token-2022",
}


def _ui_amount(token_amount: Dict[str, Any]) -> Optional[float]:
    """Scaled amount from a parsed ``tokenAmount`` object."""
    for key in ("uiAmountString", "uiAmount"):
        value = token_amount.get(key)
        if value is not None:
            try:
                return float(value)
            except (TypeError, ValueError):
                continue

    raw = token_amount.get("amount")
    decimals = token_amount.get("decimals") or 0
    if raw is None:
        return None
    try:
        return int(raw) / (10 ** int(decimals))
    except (TypeError, ValueError, OverflowError):
        return None


def parse_token_account(account: Dict[str, Any], program: str = "") -> Optional[BalanceEntry]:
    """
    Parse one ``jsonParsed`` token account into a balance entry.

    Returns:
        The entry, or None when the mint is missing, the shape is unexpected
        or the amount is not positive
    """
    try:
        info = account["account"]["data"]["parsed"]["info"]
    except (KeyError, TypeError):
        return None
    if not isinstance(info, dict):
        return None

    mint = info.get("mint")
    token_amount = info.get("tokenAmount") or {}
    if not isinstance(mint, str) or not mint or not isinstance(token_amount, dict):
        return None

    amount = _ui_amount(token_amount)
    if amount is None or not math.isfinite(amount) or amount <= 0:
        return None

    try:
        decimals = max(0, int(token_amount.get("decimals") or 0))
    except (TypeError, ValueError):
        decimals = 0

    try:
        return BalanceEntry(
            mint=mint,
            amount=amount,
            decimals=decimals,
            program=PROGRAM_LABELS.get(program, program),
        )
    except ValidationError:
        return None


class BalanceFetcher(BaseService):
    """Fetches native and token balances for an owner address."""

    def __init__(self, rpc_client: SolanaRpcClient, config: Optional[SolanaConfig] = None):
        super().__init__()
        self.rpc = rpc_client
        self.config = config or SolanaConfig()

    @property
    def program_ids(self) -> List[str]:
        """Token programs queried for every wallet."""
        programs = [TOKEN_PROGRAM_ID]
        if self.config.include_token_2022:
            programs.append(TOKEN_2022_PROGRAM_ID)
        return programs

    async def fetch_balances(self, owner: str) -> WalletBalances:
        """
        Fetch the native balance and all positive token balances of ``owner``.

        Rows are listed per token account; the same mint held under two
        programs yields two rows.

        Args:
            owner: Wallet address

        Returns:
            Native amount in SOL, token entries and any sub-fetch warnings
        """
        native_result, *program_results = await asyncio.gather(
            self._fetch_native(owner),
            *[self._fetch_program(owner, program_id) for program_id in self.program_ids]
        )

        native, native_warning = native_result
        warnings = [native_warning] if native_warning else []
        tokens: List[BalanceEntry] = []
        for entries, warning in program_results:
            tokens.extend(entries)
            if warning:
                warnings.append(warning)

        return WalletBalances(native=native, tokens=tokens, warnings=warnings)

    async def _fetch_native(self, owner: str) -> Tuple[float, Optional[str]]:
        try:
            lamports = await self.rpc.get_balance(owner)
        except Exception as e:
            self.logger.warning(f"Native balance lookup failed for {owner}: {str(e)}")
            return 0.0, "native balance unavailable"
        return lamports / LAMPORTS_PER_SOL, None

    async def _fetch_program(self, owner: str, program_id: str) -> Tuple[List[BalanceEntry], Optional[str]]:
        label = PROGRAM_LABELS.get(program_id, program_id)
        try:
            accounts = await self.rpc.get_token_accounts_by_owner(owner, program_id)
        except Exception as e:
            self.logger.warning(f"Token account lookup ({label}) failed for {owner}: {str(e)}")
            return [], f"{label} token accounts unavailable"

        entries = []
        for account in accounts or []:
            try:
                entry = parse_token_account(account, program_id)
            except Exception as e:
                self.logger.warning(f"Skipping unreadable {label} account for {owner}: {str(e)}")
                continue
            if entry is not None:
                entries.append(entry)
        self.logger.debug(f"{owner} holds {len(entries)} non-zero {label} accounts")
        return entries, None
