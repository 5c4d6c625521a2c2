"""
HTTP routes for recommendation-related operations.
No business logic lives here.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, status

from apps.api.app.openapi_examples import standard_error_responses
from apps.api.app.schemas.errors import ErrorResponse
from apps.api.app.schemas.recommendations import (
    RecommendationOut,
    RecommendationRequest,
    RecommendationResponseOut,
    SeedGameOut,
)
from game_recommender.logging_utils import configure_logger
from game_recommender.service.recommender_service import RecommenderService, SeedListError

logger = configure_logger(__name__)

router = APIRouter(
    prefix="/recommendations",
    tags=["recommendations"],
)


def get_service(request: Request) -> RecommenderService:
    """
    Return the recommender service built by the lifespan handler.

    Responds 503 when bootstrap did not complete (e.g. MongoDB unreachable).
    """
    service = getattr(request.app.state, "recommender_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Recommender service is not available. Please retry shortly.",
        )
    return service


@router.post(
    "",
    status_code=status.HTTP_200_OK,
    summary="Recommend games similar to three liked games",
    response_model=RecommendationResponseOut,
    responses={
        code: {"model": ErrorResponse, **doc}
        for code, doc in standard_error_responses().items()
    },
)
def post_recommendations(
    body: RecommendationRequest,
    service: RecommenderService = Depends(get_service),
) -> RecommendationResponseOut:
    logger.info(
        "recommendation_request",
        extra={"event": "recommendations.request", "count": len(body.games)},
    )

    try:
        result = service.recommend(body.games)
    except SeedListError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    return RecommendationResponseOut(
        recommendations=[RecommendationOut(**rec.as_dict()) for rec in result.recommendations],
        user_games=[
            SeedGameOut(
                steam_appid=item.identifier,
                name=item.name,
                genres=list(item.genres),
                categories=list(item.categories),
            )
            for item in result.seed_games
        ],
    )
