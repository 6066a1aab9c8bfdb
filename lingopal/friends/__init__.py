from lingopal.friends.directory import UserDirectory
from lingopal.friends.graph import FriendshipGraph
from lingopal.friends.ledger import FriendRequestLedger
from lingopal.friends.recommendations import RecommendationEngine, is_candidate

__all__ = [
    "UserDirectory",
    "FriendshipGraph",
    "FriendRequestLedger",
    "RecommendationEngine",
    "is_candidate",
]
