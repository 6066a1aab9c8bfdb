from typing import List

from fastapi import APIRouter

from lingopal.core.deps import CurrentUserDep, SessionDep
from lingopal.friends.graph import FriendshipGraph
from lingopal.friends.recommendations import RecommendationEngine
from lingopal.friends.schemas import UserProfile

router = APIRouter(tags=["friends"])


@router.get("/friends", response_model=List[UserProfile])
async def get_friends(db: SessionDep, user_id: CurrentUserDep):
    friends = await FriendshipGraph.friends_of(db, user_id)
    return [UserProfile.from_user(friend) for friend in friends]


@router.get("/recommendations", response_model=List[UserProfile])
async def get_recommendations(db: SessionDep, user_id: CurrentUserDep):
    """Onboarded users who are not me and not yet my friends"""
    return [
        UserProfile.from_user(user)
        async for user in RecommendationEngine.recommend(db, user_id)
    ]
