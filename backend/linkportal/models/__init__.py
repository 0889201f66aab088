from linkportal.models.assignment import Assignment  # noqa: F401
from linkportal.models.link import Link  # noqa: F401
from linkportal.models.user import User  # noqa: F401
