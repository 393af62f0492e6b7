"""
Domain-specific exceptions for the auctions app.

Each exception has a stable ``code`` so clients can pick a remedy:
refresh the bid amount, verify identity, or wait for the auction.
Insufficient credits and write conflicts come from the credits app.
"""


class AuctionsServiceError(Exception):
    """Base exception for all recoverable auction service errors."""
    code = 'auctions_error'


class AuctionNotFoundError(AuctionsServiceError):
    """Raised when an auction does not exist."""
    code = 'auction_not_found'


class AuctionNotActiveError(AuctionsServiceError):
    """Raised when bidding on an auction that is not open."""
    code = 'auction_not_active'


class NotVerifiedError(AuctionsServiceError):
    """Raised when an unverified user tries to bid."""
    code = 'not_verified'


class AccountBlockedError(AuctionsServiceError):
    """Raised when a blocked user tries to bid or publish."""
    code = 'account_blocked'


class BidTooLowError(AuctionsServiceError):
    """Raised when a bid is below the current leader plus the increment."""
    code = 'bid_too_low'

    def __init__(self, *, amount: int, minimum: int):
        self.amount = amount
        self.minimum = minimum
        super().__init__(f"Bid of {amount} is too low, the minimum is {minimum}")


class BidExceedsMaxError(AuctionsServiceError):
    """Raised when a bid is above the platform ceiling."""
    code = 'bid_exceeds_max'

    def __init__(self, *, amount: int, maximum: int):
        self.amount = amount
        self.maximum = maximum
        super().__init__(f"Bid of {amount} exceeds the maximum of {maximum}")


class InvalidTransitionError(AuctionsServiceError):
    """Raised when the auction's status does not allow the operation."""
    code = 'invalid_transition'


class AuctionNotEndedError(AuctionsServiceError):
    """Raised when finalizing an auction before its end date."""
    code = 'auction_not_ended'


class InvalidAuctionError(AuctionsServiceError):
    """Raised when auction parameters are invalid."""
    code = 'invalid_auction'


class NotAuctionOwnerError(AuctionsServiceError):
    """Raised when someone other than the seller manages an auction."""
    code = 'not_auction_owner'


class NotAuctionWinnerError(AuctionsServiceError):
    """Raised when someone other than the winner confirms a purchase."""
    code = 'not_auction_winner'


class AuctionIntegrityError(Exception):
    """
    An auction invariant was violated, e.g. a winner already assigned to
    an auction that is still active. Fatal: never retried or caught.
    """
    code = 'auction_integrity'
