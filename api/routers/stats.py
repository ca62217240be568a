"""
Stats API Endpoints.

Admin dashboard figures, recomputed from the store on every request.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from api.deps import get_store, http_error, require_admin, safe_error
from api.models import PopulationEntry, PopulationResponse, StatsResponse
from domain.actor import Actor
from domain.errors import GradingError
from domain.pricing import CURRENCY
from domain.stats import population_percentages
from repositories.grading_store import GradingStore
from services.stats_service import get_dashboard_stats, get_grade_population

router = APIRouter()


@router.get(
    "/stats",
    response_model=StatsResponse,
    summary="Dashboard Statistics",
)
def read_stats(
    actor: Actor = Depends(require_admin),
    store: GradingStore = Depends(get_store),
):
    """
    Totals for the admin dashboard.

    `average_completion_days` is null until at least one card is completed.
    """
    try:
        stats = get_dashboard_stats(store)

        return StatsResponse(
            total_orders=stats.total_orders,
            orders_by_status={status.value: count for status, count in stats.orders_by_status.items()},
            total_revenue=stats.total_revenue,
            currency=CURRENCY,
            orders_this_month=stats.orders_this_month,
            completed_this_month=stats.completed_this_month,
            average_completion_days=stats.average_completion_days,
        )
    except GradingError as e:
        raise http_error(e)
    except Exception as e:
        raise safe_error("Stats computation", e)


@router.get(
    "/stats/population",
    response_model=PopulationResponse,
    summary="Grade Population Report",
)
def read_population(
    set_name: Optional[str] = Query(None, description="Only cards from this set"),
    card_name: Optional[str] = Query(None, description="Only cards with this name"),
    actor: Actor = Depends(require_admin),
    store: GradingStore = Depends(get_store),
):
    """
    Completed cards per final grade, highest grade first.

    Filters match case-insensitively; every grade is listed even when its count is zero.
    """
    try:
        population = get_grade_population(store, set_name=set_name, card_name=card_name)
        percentages = population_percentages(population)

        return PopulationResponse(
            grades=[
                PopulationEntry(
                    grade=grade.value,
                    label=grade.label,
                    count=count,
                    percentage=percentages[grade],
                )
                for grade, count in population.items()
            ],
            total_graded=sum(population.values()),
            set_name=set_name,
            card_name=card_name,
        )
    except GradingError as e:
        raise http_error(e)
    except Exception as e:
        raise safe_error("Population report", e)
