from fastapi import APIRouter, Depends

from linkportal.core.auth import get_current_admin
from linkportal.database.deps import get_store
from linkportal.schemas.stats import PortalStatsOut
from linkportal.schemas.user import UserOut
from linkportal.services.grouping import portal_stats
from linkportal.services.store import PortalStore

router = APIRouter(prefix="/stats", tags=["Stats"])


@router.get("", response_model=PortalStatsOut)
def read_stats(
    store: PortalStore = Depends(get_store),
    current_user: UserOut = Depends(get_current_admin),
):
    return portal_stats(store.list_links(), store.list_users(), store.get_all_assignments())
