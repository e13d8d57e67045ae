"""
Reader AI - Assistant Features
Chapter summaries and conversational book recommendations
"""

from assistant.summaries import SummaryService, get_summary_service, init_summary_service
from assistant.recommendations import (
    RecommendationService,
    RecommendationConversation,
    RequestState,
    get_recommendation_conversation,
    init_recommendation_conversation,
)

__all__ = [
    "SummaryService",
    "get_summary_service",
    "init_summary_service",
    "RecommendationService",
    "RecommendationConversation",
    "RequestState",
    "get_recommendation_conversation",
    "init_recommendation_conversation",
]
