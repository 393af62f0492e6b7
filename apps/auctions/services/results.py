"""Typed results of successful auction operations."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from uuid import UUID

from apps.auctions.models import AuctionStatus, Bid


@dataclass(frozen=True)
class BidPlacement:
    bid: Bid
    end_date: datetime
    extended: bool


@dataclass(frozen=True)
class FinalizationResult:
    auction_id: UUID
    winner_id: Optional[UUID]
    winning_bid: Optional[int]
    reserve_met: bool
    already_finalized: bool = False
    status: str = AuctionStatus.FINISHED

    @property
    def has_winner(self) -> bool:
        return self.winner_id is not None

    @property
    def is_final(self) -> bool:
        return self.status == AuctionStatus.FINISHED

    @classmethod
    def from_auction(cls, auction, *, already_finalized: bool) -> 'FinalizationResult':
        return cls(
            auction_id=auction.id,
            winner_id=auction.winner_id,
            winning_bid=auction.winning_bid,
            reserve_met=auction.winner_id is not None,
            already_finalized=already_finalized,
            status=auction.status,
        )
