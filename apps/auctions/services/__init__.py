"""
Auctions app services layer.

Bidding, state transitions and finalization all lock the auction row
first; credits move only through the credits ledger.
"""

from .exceptions import (
    AuctionsServiceError,
    AuctionNotFoundError,
    AuctionNotActiveError,
    NotVerifiedError,
    AccountBlockedError,
    BidTooLowError,
    BidExceedsMaxError,
    InvalidTransitionError,
    AuctionNotEndedError,
    InvalidAuctionError,
    NotAuctionOwnerError,
    NotAuctionWinnerError,
    AuctionIntegrityError,
)

from .results import BidPlacement, FinalizationResult

from .lifecycle import (
    create_auction,
    get_auction_by_id,
    submit_auction,
    approve_auction,
    pause_auction,
    resume_auction,
    delete_auction,
    highlight_auction,
)

from .bidding import (
    place_bid,
    get_top_bid,
    get_minimum_bid,
    hold_amount_for,
)

from .finalization import (
    finalize_auction,
    finalize_expired_auctions,
)

from .settlement import (
    confirm_purchase,
    get_abandoned_auctions,
    penalize_abandoned_auctions,
)


__all__ = [
    # Exceptions
    'AuctionsServiceError',
    'AuctionNotFoundError',
    'AuctionNotActiveError',
    'NotVerifiedError',
    'AccountBlockedError',
    'BidTooLowError',
    'BidExceedsMaxError',
    'InvalidTransitionError',
    'AuctionNotEndedError',
    'InvalidAuctionError',
    'NotAuctionOwnerError',
    'NotAuctionWinnerError',
    'AuctionIntegrityError',

    # Results
    'BidPlacement',
    'FinalizationResult',

    # Lifecycle
    'create_auction',
    'get_auction_by_id',
    'submit_auction',
    'approve_auction',
    'pause_auction',
    'resume_auction',
    'delete_auction',
    'highlight_auction',

    # Bidding
    'place_bid',
    'get_top_bid',
    'get_minimum_bid',
    'hold_amount_for',

    # Finalization
    'finalize_auction',
    'finalize_expired_auctions',

    # Settlement
    'confirm_purchase',
    'get_abandoned_auctions',
    'penalize_abandoned_auctions',
]
