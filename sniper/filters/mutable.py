"""Metadata mutability and socials checks."""

from typing import Any

import httpx
import structlog

from ..core.interfaces import ChainDataProvider
from ..core.types import FilterResult, PoolKeys

logger = structlog.get_logger(__name__)


class MutableFilter:
    """Rejects tokens with mutable metadata or without social links."""

    def __init__(
        self,
        provider: ChainDataProvider,
        session: httpx.AsyncClient,
        check_mutable: bool = True,
        check_socials: bool = False,
    ) -> None:
        """Initialize mutable filter.

        Args:
            provider: Chain reads
            session: Shared HTTP client for metadata JSON, owned by the caller
            check_mutable: Reject tokens whose metadata can be changed
            check_socials: Reject tokens without social links
        """
        self.provider = provider
        self.session = session
        self.check_mutable = check_mutable
        self.check_socials = check_socials
        self._cached_result: FilterResult | None = None

        errors = []
        if check_mutable:
            errors.append("mutable")
        if check_socials:
            errors.append("socials")
        self._error_message = f"Failed to check {' and '.join(errors)}"

    async def execute(self, pool_keys: PoolKeys) -> FilterResult:
        if self._cached_result is not None:
            return self._cached_result

        try:
            metadata = await self.provider.get_token_metadata(pool_keys.base_mint)
            mutable = self.check_mutable and metadata.mutable
            has_socials = (
                await self._has_socials(metadata.uri) if self.check_socials else True
            )
        except Exception as e:
            logger.error(self._error_message, mint=pool_keys.base_mint, error=str(e))
            return FilterResult(ok=False, message=self._error_message)

        if not mutable and has_socials:
            self._cached_result = FilterResult(ok=True)
            return self._cached_result

        message = []
        if mutable:
            message.append("metadata can be changed")
        if not has_socials:
            message.append("has no socials")
        return FilterResult(
            ok=False, message=f"MutableSocials -> Token {' and '.join(message)}"
        )

    async def _has_socials(self, uri: str | None) -> bool:
        if not uri:
            return False

        response = await self.session.get(uri)
        response.raise_for_status()
        data: Any = response.json()

        extensions = data.get("extensions") if isinstance(data, dict) else None
        if not isinstance(extensions, dict):
            return False

        return any(value for value in extensions.values() if value is not None)
