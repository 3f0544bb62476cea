"""Verify a transaction on-chain and record its receipt."""

import logging
from dataclasses import dataclass
from typing import Optional

from turjman.services.chain_service import (
    ChainReceiptResolver,
    ChainReceiptResult,
    ReceiptOverrides,
)
from turjman.services.receipt_store import ReceiptStore
from turjman.services.trust_service import TrustScoreTracker

logger = logging.getLogger(__name__)


@dataclass
class VerificationOutcome:
    result: ChainReceiptResult
    trust_score: int
    persisted: bool = False


class VerificationService:
    """
    Glue between the resolver, the receipt store and the trust score.

    Resolving and persisting are two independent steps: a crash between them
    loses the receipt even though the transfer is final on-chain.
    """

    def __init__(
        self,
        resolver: ChainReceiptResolver,
        store: ReceiptStore,
        trust: TrustScoreTracker
    ):
        self.resolver = resolver
        self.store = store
        self.trust = trust

    async def verify_and_record(
        self,
        tx_hash: str,
        overrides: Optional[ReceiptOverrides] = None
    ) -> VerificationOutcome:
        """
        Resolve ``tx_hash`` and, when verified, bump the trust score and store the receipt.

        A failure to persist is logged and reported through ``persisted``
        rather than raised, so the caller still gets the verification result.

        Raises:
            ConfigurationError: If chain settings are missing or invalid
        """
        result = await self.resolver.resolve(tx_hash, overrides)
        if not result.ok:
            return VerificationOutcome(result=result, trust_score=self.trust.score)

        receipt = result.receipt
        trust_score = self.trust.record_verified(receipt.tx)

        persisted = False
        try:
            result.receipt = await self.store.add(receipt)
            persisted = True
        except Exception as e:
            logger.warning(f"Failed to persist receipt for {receipt.tx}: {e}", exc_info=True)

        return VerificationOutcome(result=result, trust_score=trust_score, persisted=persisted)
