from carbonnet.services.recommendations.recommendation_engine import RecommendationEngine

__all__ = ["RecommendationEngine"]
